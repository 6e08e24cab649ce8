from django.core.management.base import BaseCommand
from ...services import WorkItemTemplateService


class Command(BaseCommand):
    help = 'Seed the built-in work item templates (skipped when defaults already exist)'

    def handle(self, *args, **options):
        created = WorkItemTemplateService().seed_default_templates()
        if created:
            self.stdout.write(self.style.SUCCESS(f'Created {created} default work item templates'))
        else:
            self.stdout.write('Default work item templates already exist, nothing to do')
