"""
Commande Django pour purger la corbeille des documents.

Usage:
    python manage.py purger_corbeille [--dry-run] [--jours 30]

Les documents supprimés depuis plus de CORBEILLE_RETENTION_DAYS jours sont
effacés de la base avec leurs fichiers (corrections comprises). À planifier
via un cron job.
"""

from django.conf import settings
from django.core.management.base import BaseCommand

from corbeille.services import documents_a_purger, purger


class Command(BaseCommand):
    help = 'Supprime définitivement les documents restés trop longtemps en corbeille'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Affiche ce qui serait supprimé sans effectuer les suppressions',
        )
        parser.add_argument(
            '--jours',
            type=int,
            default=settings.CORBEILLE_RETENTION_DAYS,
            help='Ancienneté minimale de la suppression, en jours',
        )

    def handle(self, *args, **options):
        jours = options['jours']
        self.stdout.write(self.style.HTTP_INFO('=== PURGE DE LA CORBEILLE ==='))

        documents = documents_a_purger(jours).select_related('telecharge_par')
        self.stdout.write(f"📊 Documents supprimés depuis plus de {jours} jours: {documents.count()}")

        if options['dry_run']:
            self.stdout.write(self.style.WARNING('🔍 MODE DRY-RUN - Aucune modification effectuée'))
            for document in documents:
                self.stdout.write(
                    f"  - ID {document.id}: {document.titre} ({document.telecharge_par.email}, "
                    f"supprimé le {document.deleted_at:%d/%m/%Y})"
                )
            return

        nombre = purger(jours)
        if nombre:
            self.stdout.write(self.style.SUCCESS(f'🗑️  {nombre} document(s) supprimé(s) définitivement'))
        else:
            self.stdout.write(self.style.SUCCESS('✅ Aucun document à purger'))

        self.stdout.write(self.style.HTTP_INFO('=== PURGE TERMINÉE ==='))
