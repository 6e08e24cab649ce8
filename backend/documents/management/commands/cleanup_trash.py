from django.conf import settings
from django.core.management.base import BaseCommand
from backend.documents.services import DocumentService


class Command(BaseCommand):
    help = 'Permanently delete documents that have been in the trash longer than the retention period'

    def add_arguments(self, parser):
        parser.add_argument(
            '--days',
            type=int,
            default=settings.TRASH_RETENTION_DAYS,
            help=f'Retention period in days (default: {settings.TRASH_RETENTION_DAYS})',
        )

    def handle(self, *args, **options):
        days = options['days']
        if days < 0:
            self.stdout.write(self.style.ERROR('--days must be zero or positive'))
            return
        count = DocumentService().cleanup_trash(days=days)
        self.stdout.write(self.style.SUCCESS(f'Removed {count} document(s) older than {days} days from the trash'))
