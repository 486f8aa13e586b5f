from getpass import getpass

from django.core.management.base import BaseCommand, CommandError
from web_portal.models import AdminAccount


class Command(BaseCommand):
    help = "Create the first super admin account"

    def add_arguments(self, parser):
        parser.add_argument('--username', required=True)
        parser.add_argument('--password', help="Prompted for when omitted")

    def handle(self, *args, **options):
        username = options['username'].strip()
        if AdminAccount.objects.filter(username=username).exists():
            raise CommandError(f"Admin '{username}' already exists")

        password = options.get('password') or getpass("Password: ")
        if len(password) < 6:
            raise CommandError("Password must be at least 6 characters")

        admin = AdminAccount(username=username, role='super_admin', is_active=True)
        admin.set_password(password)
        admin.save()
        self.stdout.write(self.style.SUCCESS(f"Super admin '{username}' created"))
