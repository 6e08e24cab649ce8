"""
Tests for budgets: total aggregation, alerts, category summary and the PDF report
"""
from decimal import Decimal

from django.test import TestCase
from rest_framework import status
from backend.budgets.services import BudgetService
from backend.budgets.translations import format_currency, get_pdf_translations, translate_category
from backend.core.exceptions import Conflict, NotFound, ValidationError
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.tasks.services import TaskService


class BudgetTotalsTests(TestCase):
    """Budget totals are recomputed from items and priced tasks"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.project = TestDataFactory.create_project(self.user)
        self.service = BudgetService()

    def test_create_budget_starts_at_zero(self):
        """A new budget on a project without priced tasks has zero totals"""
        budget = self.service.create_budget(self.project.id)
        self.assertEqual(budget.total_estimated, Decimal('0'))
        self.assertEqual(budget.total_actual, Decimal('0'))

    def test_create_budget_twice_conflicts(self):
        """A project can only have one budget"""
        self.service.create_budget(self.project.id)
        with self.assertRaises(Conflict) as ctx:
            self.service.create_budget(self.project.id)
        self.assertEqual(ctx.exception.message, 'Budget already exists for this project')

    def test_create_budget_counts_existing_priced_tasks(self):
        """Tasks priced before the budget existed are included"""
        TestDataFactory.create_task(self.project, price=Decimal('10.00'), amount=Decimal('3'))
        budget = self.service.create_budget(self.project.id)
        self.assertEqual(budget.total_actual_from_tasks, Decimal('30.00'))
        self.assertEqual(budget.total_actual, Decimal('30.00'))

    def test_get_budget_missing(self):
        """Looking up a budget for a project without one raises NotFound"""
        with self.assertRaises(NotFound):
            self.service.get_budget(self.project.id)

    def test_add_item_recalculates_totals(self):
        """Adding items updates estimated and actual totals"""
        budget = self.service.create_budget(self.project.id)
        self.service.add_budget_item(budget.id, {
            'name': 'Tiles', 'category': 'materials',
            'estimated_cost': Decimal('500.00'), 'actual_cost': Decimal('450.00'),
        })
        self.service.add_budget_item(budget.id, {
            'name': 'Permit', 'category': 'permits', 'estimated_cost': Decimal('100.00'),
        })
        budget.refresh_from_db()
        self.assertEqual(budget.total_estimated, Decimal('600.00'))
        self.assertEqual(budget.total_actual_from_items, Decimal('450.00'))
        self.assertEqual(budget.total_actual, Decimal('450.00'))

    def test_add_item_requires_fields(self):
        """name, category and estimated_cost are required"""
        budget = self.service.create_budget(self.project.id)
        with self.assertRaises(ValidationError) as ctx:
            self.service.add_budget_item(budget.id, {'name': 'Tiles'})
        self.assertEqual(ctx.exception.message, 'Missing required fields: name, category, estimated_cost')

    def test_add_item_rejects_negative_cost(self):
        """Costs must not be negative"""
        budget = self.service.create_budget(self.project.id)
        with self.assertRaises(ValidationError):
            self.service.add_budget_item(budget.id, {
                'name': 'Refund', 'category': 'other', 'estimated_cost': Decimal('-1.00'),
            })

    def test_add_item_rejects_unknown_category(self):
        """Item categories are limited to the known set"""
        budget = self.service.create_budget(self.project.id)
        with self.assertRaises(ValidationError):
            self.service.add_budget_item(budget.id, {
                'name': 'Snacks', 'category': 'food', 'estimated_cost': Decimal('10.00'),
            })

    def test_update_and_delete_item_recalculate(self):
        """Updating and deleting items keeps totals in sync"""
        budget = self.service.create_budget(self.project.id)
        item = self.service.add_budget_item(budget.id, {
            'name': 'Paint', 'category': 'materials', 'estimated_cost': Decimal('200.00'),
        })
        self.service.update_budget_item(item.id, {'actual_cost': Decimal('250.00')})
        budget.refresh_from_db()
        self.assertEqual(budget.total_actual, Decimal('250.00'))

        self.service.delete_budget_item(item.id)
        budget.refresh_from_db()
        self.assertEqual(budget.total_estimated, Decimal('0'))
        self.assertEqual(budget.total_actual, Decimal('0'))

    def test_task_price_changes_update_budget(self):
        """Creating, repricing and deleting tasks flows into the budget"""
        budget = self.service.create_budget(self.project.id)
        task_service = TaskService()
        task = task_service.create_task(self.project.id, {
            'name': 'Lay tiles', 'price': Decimal('25.00'), 'amount': Decimal('4'),
        })
        budget.refresh_from_db()
        self.assertEqual(budget.total_actual_from_tasks, Decimal('100.00'))

        task_service.update_task(task.id, {'amount': Decimal('6')})
        budget.refresh_from_db()
        self.assertEqual(budget.total_actual_from_tasks, Decimal('150.00'))

        task_service.delete_task(task.id)
        budget.refresh_from_db()
        self.assertEqual(budget.total_actual_from_tasks, Decimal('0'))

    def test_total_actual_is_items_plus_tasks(self):
        """total_actual sums item actuals and task prices"""
        budget = self.service.create_budget(self.project.id)
        self.service.add_budget_item(budget.id, {
            'name': 'Electrician', 'category': 'labor',
            'estimated_cost': Decimal('300.00'), 'actual_cost': Decimal('320.00'),
        })
        TaskService().create_task(self.project.id, {'name': 'Sanding', 'price': Decimal('80.00')})
        budget.refresh_from_db()
        self.assertEqual(budget.total_actual, Decimal('400.00'))
        self.assertEqual(budget.total_actual, budget.total_actual_from_items + budget.total_actual_from_tasks)

    def test_recalculate_for_project_without_budget(self):
        """Recalculating a project without a budget is a no-op"""
        self.assertIsNone(self.service.recalculate_budget_totals_for_project(self.project.id))


class BudgetAlertTests(TestCase):
    """Overspending alerts"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.project = TestDataFactory.create_project(self.user)
        self.service = BudgetService()
        self.budget = self.service.create_budget(self.project.id)

    def _spend(self, estimated, actual):
        self.service.add_budget_item(self.budget.id, {
            'name': 'Work', 'category': 'labor',
            'estimated_cost': Decimal(estimated), 'actual_cost': Decimal(actual),
        })

    def test_no_alert_within_ten_percent(self):
        """Spending up to 10% over gives no alert"""
        self._spend('1000.00', '1100.00')
        self.assertEqual(self.service.check_budget_alerts(self.budget.id), [])

    def test_warning_alert(self):
        """More than 10% over is a warning"""
        self._spend('1000.00', '1150.00')
        alerts = self.service.check_budget_alerts(self.budget.id)
        self.assertEqual(len(alerts), 1)
        self.assertEqual(alerts[0]['type'], 'warning')
        self.assertEqual(alerts[0]['message'], 'Budget exceeded by 15.0%')
        self.assertEqual(alerts[0]['variance_percentage'], 15.0)

    def test_critical_alert(self):
        """More than 20% over is critical"""
        self._spend('1000.00', '1250.00')
        alerts = self.service.check_budget_alerts(self.budget.id)
        self.assertEqual(alerts[0]['type'], 'critical')
        self.assertEqual(alerts[0]['total_actual'], Decimal('1250.00'))

    def test_no_alert_without_estimate(self):
        """A budget with no estimate never alerts"""
        TestDataFactory.create_task(self.project, price=Decimal('500.00'))
        self.service.recalculate_budget_totals(self.budget.id)
        self.assertEqual(self.service.check_budget_alerts(self.budget.id), [])


class CategorySummaryTests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.project = TestDataFactory.create_project(self.user)
        self.service = BudgetService()
        self.budget = self.service.create_budget(self.project.id)

    def test_summary_groups_items_and_adds_tasks_row(self):
        """Items are summed per category and priced tasks get their own row"""
        TestDataFactory.create_budget_item(self.budget, category='materials', estimated_cost=Decimal('100.00'),
                                           actual_cost=Decimal('80.00'))
        TestDataFactory.create_budget_item(self.budget, category='materials', estimated_cost=Decimal('50.00'),
                                           actual_cost=Decimal('60.00'))
        TestDataFactory.create_budget_item(self.budget, category='labor', estimated_cost=Decimal('200.00'))
        TestDataFactory.create_task(self.project, price=Decimal('40.00'))
        self.service.recalculate_budget_totals(self.budget.id)

        summary = {row['category']: row for row in self.service.get_category_summary(self.budget.id)}
        self.assertEqual(set(summary), {'labor', 'materials', 'tasks'})
        self.assertEqual(summary['materials']['estimated'], Decimal('150.00'))
        self.assertEqual(summary['materials']['actual'], Decimal('140.00'))
        self.assertEqual(summary['materials']['variance'], Decimal('-10.00'))
        self.assertEqual(summary['tasks']['estimated'], Decimal('0'))
        self.assertEqual(summary['tasks']['actual'], Decimal('40.00'))


class ReportTranslationTests(TestCase):

    def test_format_currency_en(self):
        """English amounts use a leading dollar sign and comma grouping"""
        self.assertEqual(format_currency(Decimal('1234.56'), 'en'), '$1,234.56')
        self.assertEqual(format_currency(None, 'en'), '$0.00')

    def test_format_currency_uk(self):
        """Ukrainian amounts use space grouping, a decimal comma and a trailing hryvnia sign"""
        self.assertEqual(format_currency(Decimal('1234567.8'), 'uk'), '1 234 567,80 грн')

    def test_unknown_language_falls_back_to_english(self):
        """Unknown languages use English labels"""
        self.assertEqual(get_pdf_translations('fr')['budget_report'], 'Budget Report')

    def test_translate_category(self):
        """Known categories are translated and unknown keys are capitalized"""
        uk = get_pdf_translations('uk')
        self.assertEqual(translate_category('materials', uk), 'Матеріали')
        self.assertEqual(translate_category('landscaping', uk), 'Landscaping')


class BudgetAPITests(TestCase):
    """Budget endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.project = TestDataFactory.create_project(self.user, name='Kitchen')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_and_get_budget(self):
        """POST creates the project budget and GET returns it with items"""
        response = self.client.post(f'/api/v1/projects/{self.project.id}/budget/')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['total_estimated'], '0.00')

        response = self.client.get(f'/api/v1/projects/{self.project.id}/budget/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['items'], [])

    def test_create_budget_twice_returns_conflict(self):
        """A second POST returns 409"""
        self.client.post(f'/api/v1/projects/{self.project.id}/budget/')
        response = self.client.post(f'/api/v1/projects/{self.project.id}/budget/')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['error'], 'Budget already exists for this project')

    def test_missing_budget_returns_404(self):
        """GET without a budget returns 404"""
        response = self.client.get(f'/api/v1/projects/{self.project.id}/budget/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error'], 'Budget not found')

    def test_other_users_budget_is_hidden(self):
        """Budgets of another user's project are not found"""
        other = TestDataFactory.create_user()
        other_project = TestDataFactory.create_project(other)
        budget = TestDataFactory.create_budget(other_project)
        response = self.client.get(f'/api/v1/projects/{other_project.id}/budget/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        response = self.client.get(f'/api/v1/budgets/{budget.id}/alerts/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_add_update_delete_item(self):
        """Item endpoints keep the budget totals current"""
        budget = BudgetService().create_budget(self.project.id)
        response = self.client.post(f'/api/v1/budgets/{budget.id}/items/', {
            'name': 'Cabinets', 'category': 'materials', 'estimated_cost': '1200.00',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        item_id = response.data['id']

        response = self.client.patch(f'/api/v1/budget-items/{item_id}/', {'actual_cost': '1300.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        budget.refresh_from_db()
        self.assertEqual(budget.total_actual, Decimal('1300.00'))

        response = self.client.delete(f'/api/v1/budget-items/{item_id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        budget.refresh_from_db()
        self.assertEqual(budget.total_estimated, Decimal('0'))

    def test_add_item_negative_cost_rejected(self):
        """Negative costs are rejected by validation"""
        budget = BudgetService().create_budget(self.project.id)
        response = self.client.post(f'/api/v1/budgets/{budget.id}/items/', {
            'name': 'Cabinets', 'category': 'materials', 'estimated_cost': '-5.00',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_alerts_and_summary(self):
        """Alerts and summary endpoints return computed data"""
        budget = BudgetService().create_budget(self.project.id)
        BudgetService().add_budget_item(budget.id, {
            'name': 'Plumber', 'category': 'labor',
            'estimated_cost': Decimal('100.00'), 'actual_cost': Decimal('130.00'),
        })
        response = self.client.get(f'/api/v1/budgets/{budget.id}/alerts/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data[0]['type'], 'critical')

        response = self.client.get(f'/api/v1/budgets/{budget.id}/summary/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data[0]['category'], 'labor')

    def test_export_pdf(self):
        """The export endpoint returns a PDF document in either language"""
        budget = BudgetService().create_budget(self.project.id)
        BudgetService().add_budget_item(budget.id, {
            'name': 'Sink', 'category': 'materials', 'estimated_cost': Decimal('250.00'),
        })
        TaskService().create_task(self.project.id, {
            'name': 'Install sink', 'price': Decimal('90.00'), 'unit': 'pcs',
        })
        for lang in ('en', 'uk', 'xx'):
            response = self.client.get(f'/api/v1/budgets/{budget.id}/export/', {'lang': lang})
            self.assertEqual(response.status_code, status.HTTP_200_OK)
            self.assertEqual(response['Content-Type'], 'application/pdf')
            self.assertIn('attachment', response['Content-Disposition'])
            self.assertTrue(response.content.startswith(b'%PDF'))

    def test_requires_authentication(self):
        """Anonymous requests are rejected"""
        self.client.logout()
        response = self.client.get(f'/api/v1/projects/{self.project.id}/budget/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
