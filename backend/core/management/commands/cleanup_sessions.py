"""
Delete sessions whose access token has expired
Usage: python manage.py cleanup_sessions
"""
from django.core.management.base import BaseCommand
from backend.core.services import SessionService


class Command(BaseCommand):
    help = 'Delete expired login sessions'

    def handle(self, *args, **options):
        deleted = SessionService().delete_expired_sessions()
        self.stdout.write(self.style.SUCCESS(f'Deleted {deleted} expired session(s)'))
