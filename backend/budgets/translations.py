"""Labels and currency formatting for the budget report, per language"""
from decimal import Decimal, ROUND_HALF_UP

DEFAULT_LANGUAGE = 'en'

PDF_TRANSLATIONS = {
    'en': {
        'budget_report': 'Budget Report',
        'project': 'Project',
        'client': 'Client',
        'email': 'Email',
        'phone': 'Phone',
        'total_budget': 'Total Budget',
        'export_date': 'Export Date',
        'budget_items': 'Budget Items',
        'id': 'ID',
        'name': 'Name',
        'amount': 'Amount',
        'unit': 'Unit',
        'price_per_unit': 'Price/Unit',
        'price': 'Price',
        'task': 'Task',
        'summary_by_category': 'Summary by Category',
        'tasks': 'Tasks',
        'total_estimated': 'Total Estimated',
        'total_actual': 'Total Actual',
        'variance': 'Variance',
        'currency_symbol': '$',
        'labor': 'Labor',
        'materials': 'Materials',
        'equipment': 'Equipment',
        'subcontractors': 'Subcontractors',
        'permits': 'Permits',
        'contingency': 'Contingency',
        'other': 'Other',
    },
    'uk': {
        'budget_report': 'Звіт по бюджету',
        'project': 'Проєкт',
        'client': 'Клієнт',
        'email': 'Ел. пошта',
        'phone': 'Телефон',
        'total_budget': 'Загальний бюджет',
        'export_date': 'Дата експорту',
        'budget_items': 'Бюджетні статті',
        'id': 'ID',
        'name': 'Назва',
        'amount': 'Кількість',
        'unit': 'Одиниця',
        'price_per_unit': 'Ціна/Од.',
        'price': 'Ціна',
        'task': 'Завдання',
        'summary_by_category': 'Підсумок за категоріями',
        'tasks': 'Завдання',
        'total_estimated': 'Загальний кошторис',
        'total_actual': 'Фактичні витрати',
        'variance': 'Різниця',
        'currency_symbol': 'грн',
        'labor': 'Робота',
        'materials': 'Матеріали',
        'equipment': 'Обладнання',
        'subcontractors': 'Субпідрядники',
        'permits': 'Дозволи',
        'contingency': 'Резерв',
        'other': 'Інше',
    },
}


def get_pdf_translations(lang):
    """Labels for a language, English when the language is unknown"""
    return PDF_TRANSLATIONS.get(lang) or PDF_TRANSLATIONS[DEFAULT_LANGUAGE]


def translate_category(category, translations):
    key = (category or '').lower()
    if key in translations:
        return translations[key]
    return key.capitalize()


def format_currency(amount, lang):
    """
    Format an amount as currency for the language.
    - en: $1,234.56 (symbol before)
    - uk: 1 234,56 грн (symbol after, space groups, decimal comma)
    """
    value = Decimal(str(amount or 0)).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
    formatted = f"{value:,.2f}"
    if lang == 'uk':
        formatted = formatted.replace(',', ' ').replace('.', ',')
        return f"{formatted} грн"
    return f"${formatted}"
