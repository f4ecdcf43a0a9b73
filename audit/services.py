# audit/services.py
import logging
from datetime import timedelta

from django.conf import settings
from django.db.models import Count, Q
from django.utils import timezone

from .models import AuditLog

logger = logging.getLogger(__name__)


def adresse_ip(request):
    if request is None:
        return None
    transmise = request.META.get('HTTP_X_FORWARDED_FOR')
    if transmise:
        return transmise.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR')


def journaliser(utilisateur, action, ressource, ressource_id=None, details=None, request=None):
    """Enregistre une entrée d'audit sans jamais interrompre l'action métier"""
    if utilisateur is not None and not getattr(utilisateur, 'is_authenticated', False):
        utilisateur = None
    try:
        return AuditLog.objects.create(
            utilisateur=utilisateur,
            action=action,
            ressource=ressource,
            ressource_id=str(ressource_id) if ressource_id is not None else None,
            details=details or {},
            adresse_ip=adresse_ip(request),
            user_agent=request.META.get('HTTP_USER_AGENT') if request is not None else None,
        )
    except Exception as e:
        logger.error(f"Erreur lors de l'enregistrement de l'audit {action}: {str(e)}")
        return None


def nettoyer_anciens_journaux(jours=None):
    """Supprime les entrées plus anciennes que la durée de rétention"""
    if jours is None:
        jours = settings.AUDIT_RETENTION_DAYS
    limite = timezone.now() - timedelta(days=jours)
    nombre, _ = AuditLog.objects.filter(date_creation__lt=limite).delete()
    logger.info(f"{nombre} entrée(s) d'audit de plus de {jours} jours supprimée(s)")
    return nombre


def filtrer_journaux(queryset, params):
    """Filtres de la consultation : user_id, action, resource, start_date, end_date, search"""
    if params.get('user_id'):
        queryset = queryset.filter(utilisateur_id=params['user_id'])
    if params.get('action'):
        queryset = queryset.filter(action=params['action'])
    if params.get('resource'):
        queryset = queryset.filter(ressource=params['resource'])
    if params.get('start_date'):
        queryset = queryset.filter(date_creation__gte=params['start_date'])
    if params.get('end_date'):
        queryset = queryset.filter(date_creation__lte=params['end_date'])
    recherche = params.get('search', '').strip()
    if recherche:
        queryset = queryset.filter(
            Q(ressource__icontains=recherche)
            | Q(utilisateur__prenom__icontains=recherche)
            | Q(utilisateur__nom__icontains=recherche)
            | Q(utilisateur__email__icontains=recherche)
        )
    return queryset


def activite_utilisateur(utilisateur, jours=30):
    depuis = timezone.now() - timedelta(days=jours)
    journaux = AuditLog.objects.filter(utilisateur=utilisateur, date_creation__gte=depuis)
    return {
        'summary': [
            {'action': ligne['action'], 'count': ligne['total']}
            for ligne in journaux.values('action').annotate(total=Count('id')).order_by('-total')
        ],
        'recent': journaux.order_by('-date_creation')[:20],
    }


def statistiques():
    maintenant = timezone.localtime()
    aujourd_hui = maintenant.replace(hour=0, minute=0, second=0, microsecond=0)
    hier = aujourd_hui - timedelta(days=1)

    top_actions = AuditLog.objects.values('action').annotate(total=Count('id')).order_by('-total')[:10]
    top_utilisateurs = (
        AuditLog.objects.filter(utilisateur__isnull=False)
        .values('utilisateur_id', 'utilisateur__email', 'utilisateur__prenom', 'utilisateur__nom')
        .annotate(total=Count('id'))
        .order_by('-total')[:10]
    )
    return {
        'total': AuditLog.objects.count(),
        'today': AuditLog.objects.filter(date_creation__gte=aujourd_hui).count(),
        'yesterday': AuditLog.objects.filter(date_creation__gte=hier, date_creation__lt=aujourd_hui).count(),
        'this_week': AuditLog.objects.filter(date_creation__gte=maintenant - timedelta(days=7)).count(),
        'top_actions': [{'action': l['action'], 'count': l['total']} for l in top_actions],
        'top_users': [
            {
                'user': {
                    'id': l['utilisateur_id'],
                    'email': l['utilisateur__email'],
                    'prenom': l['utilisateur__prenom'],
                    'nom': l['utilisateur__nom'],
                },
                'count': l['total'],
            }
            for l in top_utilisateurs
        ],
    }
