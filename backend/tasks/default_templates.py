"""Built-in work item templates seeded for every installation"""
from decimal import Decimal

DEFAULT_WORK_ITEM_TEMPLATES = [
    # Demolition
    {'name': 'Remove existing cabinets', 'description': 'Demolish and remove old kitchen or bathroom cabinets',
     'category': 'demolition', 'estimated_duration': 4, 'default_price': Decimal('500')},
    {'name': 'Remove flooring', 'description': 'Remove existing flooring material',
     'category': 'demolition', 'estimated_duration': 8, 'default_price': Decimal('800')},
    {'name': 'Remove drywall', 'description': 'Demolish and remove drywall',
     'category': 'demolition', 'estimated_duration': 6, 'default_price': Decimal('600')},

    # Framing
    {'name': 'Frame interior walls', 'description': 'Build wood frame for interior walls',
     'category': 'framing', 'estimated_duration': 16, 'default_price': Decimal('2000')},
    {'name': 'Frame door openings', 'description': 'Frame rough openings for doors',
     'category': 'framing', 'estimated_duration': 4, 'default_price': Decimal('400')},
    {'name': 'Frame window openings', 'description': 'Frame rough openings for windows',
     'category': 'framing', 'estimated_duration': 4, 'default_price': Decimal('400')},

    # Electrical
    {'name': 'Electrical rough-in', 'description': 'Install electrical wiring, boxes, and conduit',
     'category': 'electrical', 'estimated_duration': 16, 'default_price': Decimal('2500')},
    {'name': 'Install outlets and switches', 'description': 'Install electrical outlets and light switches',
     'category': 'electrical', 'estimated_duration': 8, 'default_price': Decimal('800')},
    {'name': 'Install light fixtures', 'description': 'Install ceiling and wall light fixtures',
     'category': 'electrical', 'estimated_duration': 4, 'default_price': Decimal('600')},

    # Plumbing
    {'name': 'Plumbing rough-in', 'description': 'Install water supply and drain pipes',
     'category': 'plumbing', 'estimated_duration': 16, 'default_price': Decimal('2800')},
    {'name': 'Install fixtures', 'description': 'Install sinks, faucets, and toilets',
     'category': 'plumbing', 'estimated_duration': 8, 'default_price': Decimal('1200')},
    {'name': 'Install water heater', 'description': 'Install or replace water heater',
     'category': 'plumbing', 'estimated_duration': 6, 'default_price': Decimal('1500')},

    # HVAC
    {'name': 'Install ductwork', 'description': 'Install HVAC ductwork and vents',
     'category': 'hvac', 'estimated_duration': 16, 'default_price': Decimal('3000')},
    {'name': 'Install HVAC unit', 'description': 'Install heating and cooling unit',
     'category': 'hvac', 'estimated_duration': 8, 'default_price': Decimal('4500')},

    # Drywall
    {'name': 'Hang drywall', 'description': 'Install drywall sheets on walls and ceilings',
     'category': 'drywall', 'estimated_duration': 12, 'default_price': Decimal('1500')},
    {'name': 'Tape and mud drywall', 'description': 'Tape seams and apply joint compound',
     'category': 'drywall', 'estimated_duration': 16, 'default_price': Decimal('1200')},
    {'name': 'Sand and finish drywall', 'description': 'Sand drywall smooth and apply final coat',
     'category': 'drywall', 'estimated_duration': 8, 'default_price': Decimal('800')},

    # Painting
    {'name': 'Prime walls', 'description': 'Apply primer to walls and ceilings',
     'category': 'painting', 'estimated_duration': 8, 'default_price': Decimal('600')},
    {'name': 'Paint walls', 'description': 'Apply finish paint to walls',
     'category': 'painting', 'estimated_duration': 12, 'default_price': Decimal('1000')},
    {'name': 'Paint trim and doors', 'description': 'Paint baseboards, trim, and doors',
     'category': 'painting', 'estimated_duration': 8, 'default_price': Decimal('800')},

    # Flooring
    {'name': 'Install hardwood flooring', 'description': 'Install hardwood floor planks',
     'category': 'flooring', 'estimated_duration': 16, 'default_price': Decimal('3500')},
    {'name': 'Install tile flooring', 'description': 'Install ceramic or porcelain tile',
     'category': 'flooring', 'estimated_duration': 16, 'default_price': Decimal('3000')},
    {'name': 'Install carpet', 'description': 'Install carpet with padding',
     'category': 'flooring', 'estimated_duration': 8, 'default_price': Decimal('2000')},
    {'name': 'Install vinyl flooring', 'description': 'Install vinyl plank or sheet flooring',
     'category': 'flooring', 'estimated_duration': 12, 'default_price': Decimal('2200')},

    # Finishing
    {'name': 'Install baseboards', 'description': 'Install baseboard trim',
     'category': 'finishing', 'estimated_duration': 8, 'default_price': Decimal('800')},
    {'name': 'Install crown molding', 'description': 'Install crown molding at ceiling',
     'category': 'finishing', 'estimated_duration': 8, 'default_price': Decimal('1000')},
    {'name': 'Install doors', 'description': 'Hang interior doors with hardware',
     'category': 'finishing', 'estimated_duration': 4, 'default_price': Decimal('600')},
    {'name': 'Install cabinets', 'description': 'Install kitchen or bathroom cabinets',
     'category': 'finishing', 'estimated_duration': 16, 'default_price': Decimal('2500')},
    {'name': 'Install countertops', 'description': 'Template and install countertops',
     'category': 'finishing', 'estimated_duration': 8, 'default_price': Decimal('3000')},

    # Cleanup
    {'name': 'Daily cleanup', 'description': 'Daily site cleanup and debris removal',
     'category': 'cleanup', 'estimated_duration': 2, 'default_price': Decimal('150')},
    {'name': 'Final cleanup', 'description': 'Thorough final cleaning before handover',
     'category': 'cleanup', 'estimated_duration': 8, 'default_price': Decimal('500')},
    {'name': 'Dumpster rental', 'description': 'Rent dumpster for construction debris',
     'category': 'cleanup', 'estimated_duration': 0, 'default_price': Decimal('400')},

    # Inspection
    {'name': 'Framing inspection', 'description': 'Schedule and pass framing inspection',
     'category': 'inspection', 'estimated_duration': 2, 'default_price': Decimal('200')},
    {'name': 'Electrical inspection', 'description': 'Schedule and pass electrical inspection',
     'category': 'inspection', 'estimated_duration': 2, 'default_price': Decimal('200')},
    {'name': 'Plumbing inspection', 'description': 'Schedule and pass plumbing inspection',
     'category': 'inspection', 'estimated_duration': 2, 'default_price': Decimal('200')},
    {'name': 'Final inspection', 'description': 'Schedule and pass final building inspection',
     'category': 'inspection', 'estimated_duration': 2, 'default_price': Decimal('250')},
]
