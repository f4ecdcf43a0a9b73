"""
Commande Django pour nettoyer le journal d'audit.

Usage:
    python manage.py nettoyer_journaux [--jours 365]
"""

from django.conf import settings
from django.core.management.base import BaseCommand

from audit.services import nettoyer_anciens_journaux


class Command(BaseCommand):
    help = "Supprime les entrées du journal d'audit plus anciennes que la durée de rétention"

    def add_arguments(self, parser):
        parser.add_argument(
            '--jours',
            type=int,
            default=settings.AUDIT_RETENTION_DAYS,
            help='Durée de rétention en jours',
        )

    def handle(self, *args, **options):
        nombre = nettoyer_anciens_journaux(options['jours'])
        self.stdout.write(
            self.style.SUCCESS(f"✅ {nombre} entrée(s) de plus de {options['jours']} jours supprimée(s)")
        )
