from django.core.management.base import BaseCommand, CommandError

from portal.models import User
from portal.services.realtime import broadcast_notifications_update


class Command(BaseCommand):
    help = "Tell open inbox sockets to re-fetch their notifications."

    def add_arguments(self, parser):
        parser.add_argument('--user', type=int, help='only this user id (default: every active coordinator)')

    def handle(self, *args, **options):
        user_id = options.get('user')
        if user_id:
            if not User.objects.filter(id=user_id).exists():
                raise CommandError(f"user {user_id} does not exist")
            user_ids = [user_id]
        else:
            user_ids = list(User.objects.filter(role='coordinator', is_active=True).values_list('id', flat=True))

        sent = sum(1 for uid in user_ids if broadcast_notifications_update(uid))
        self.stdout.write(self.style.SUCCESS(f"Broadcast notifications update to {sent}/{len(user_ids)} users"))
