# dashboard/services.py
"""
Agrégats des tableaux de bord administrateur, professeur et étudiant.
"""
import logging
from datetime import timedelta

from django.db.models import Count
from django.utils import timezone

from academic_structure.models import Filiere, Matiere, Niveau, ProfesseurMatiere
from audit.models import AuditLog
from commentaires.models import Commentaire
from documents.models import Document
from documents.services import documents_visibles
from utilisateurs.models import Utilisateur

logger = logging.getLogger(__name__)

ACTIONS_APPRENTISSAGE = ('DOCUMENT_VIEW', 'DOCUMENT_DOWNLOAD')


def croissance(ce_mois, mois_dernier):
    """Évolution d'un mois sur l'autre, formatée '12.5%'"""
    if mois_dernier > 0:
        return f"{(ce_mois - mois_dernier) / mois_dernier * 100:.1f}%"
    return '100%' if ce_mois > 0 else '0%'


def bornes_mois(maintenant=None):
    """(début du mois, début du mois précédent) dans le fuseau local"""
    maintenant = timezone.localtime(maintenant)
    debut_mois = maintenant.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    debut_mois_dernier = (debut_mois - timedelta(days=1)).replace(day=1)
    return debut_mois, debut_mois_dernier


def serie_apprentissage(utilisateur, aujourd_hui=None):
    """Nombre de jours consécutifs avec une consultation ou un téléchargement,
    en partant d'aujourd'hui ou d'hier"""
    aujourd_hui = aujourd_hui or timezone.localdate()
    jours = {
        timezone.localtime(date).date()
        for date in AuditLog.objects.filter(
            utilisateur=utilisateur, action__in=ACTIONS_APPRENTISSAGE
        ).values_list('date_creation', flat=True)
    }
    if aujourd_hui in jours:
        jour = aujourd_hui
    elif aujourd_hui - timedelta(days=1) in jours:
        jour = aujourd_hui - timedelta(days=1)
    else:
        return 0

    serie = 0
    while jour in jours:
        serie += 1
        jour -= timedelta(days=1)
    return serie


def _compter_periodes(queryset, champ='date_creation'):
    debut_mois, debut_mois_dernier = bornes_mois()
    return (
        queryset.filter(**{f'{champ}__gte': debut_mois}).count(),
        queryset.filter(**{f'{champ}__gte': debut_mois_dernier, f'{champ}__lt': debut_mois}).count(),
    )


def _nom_complet(utilisateur):
    return f"{utilisateur.prenom} {utilisateur.nom}" if utilisateur else 'Utilisateur supprimé'


def _resume_document(document):
    return {
        'id': document.pk,
        'titre': document.titre,
        'description': document.description,
        'matiere': {'nom': document.matiere.nom} if document.matiere else None,
        'telecharge_par': {'prenom': document.telecharge_par.prenom, 'nom': document.telecharge_par.nom},
    }


# ===============================
# ADMINISTRATEUR
# ===============================

def tableau_admin():
    debut_mois, _ = bornes_mois()
    debut_semaine = timezone.now() - timedelta(days=7)

    nouveaux_ce_mois, nouveaux_mois_dernier = _compter_periodes(Utilisateur.objects.all())
    documents_ce_mois, documents_mois_dernier = _compter_periodes(Document.objects.all())
    total_utilisateurs = Utilisateur.objects.count()
    utilisateurs_actifs = Utilisateur.objects.filter(is_active=True).count()

    activites = AuditLog.objects.select_related('utilisateur').order_by('-date_creation')[:10]
    top = (
        AuditLog.objects.filter(date_creation__gte=debut_mois, utilisateur__isnull=False)
        .values('utilisateur_id', 'utilisateur__prenom', 'utilisateur__nom', 'utilisateur__role')
        .annotate(total=Count('id'))
        .order_by('-total')[:5]
    )

    return {
        'stats': {
            'total_users': total_utilisateurs,
            'active_users': utilisateurs_actifs,
            'total_documents': Document.objects.filter(is_deleted=False).count(),
            'deleted_documents': Document.objects.filter(is_deleted=True).count(),
            'total_filieres': Filiere.objects.filter(is_deleted=False).count(),
            'total_matieres': Matiere.objects.filter(is_deleted=False).count(),
            'total_niveaux': Niveau.objects.count(),
            'user_growth': croissance(nouveaux_ce_mois, nouveaux_mois_dernier),
            'document_growth': croissance(documents_ce_mois, documents_mois_dernier),
            'system_activity': AuditLog.objects.filter(date_creation__gte=debut_mois).count(),
        },
        'charts': {
            'role_distribution': [
                {'role': l['role'], 'count': l['total']}
                for l in Utilisateur.objects.values('role').annotate(total=Count('id')).order_by('role')
            ],
            'user_growth_trend': [nouveaux_mois_dernier, nouveaux_ce_mois],
        },
        'recent_activities': [
            {
                'id': a.pk,
                'action': a.action,
                'user': _nom_complet(a.utilisateur),
                'user_role': a.utilisateur.role if a.utilisateur else None,
                'date_creation': a.date_creation,
                'details': a.details,
            }
            for a in activites
        ],
        'top_active_users': [
            {
                'id': l['utilisateur_id'],
                'prenom': l['utilisateur__prenom'],
                'nom': l['utilisateur__nom'],
                'role': l['utilisateur__role'],
                'activity_count': l['total'],
            }
            for l in top
        ],
        'system_health': {
            'total_audit_logs': AuditLog.objects.count(),
            'recent_logins': AuditLog.objects.filter(action='LOGIN', date_creation__gte=debut_semaine).count(),
            'active_users': utilisateurs_actifs,
        },
    }


# ===============================
# PROFESSEUR
# ===============================

def tableau_professeur(professeur):
    debut_mois, _ = bornes_mois()
    documents = Document.objects.filter(telecharge_par=professeur, is_deleted=False)
    identifiants = [str(pk) for pk in documents.values_list('pk', flat=True)]
    journaux = AuditLog.objects.filter(ressource='document', ressource_id__in=identifiants)

    documents_ce_mois, documents_mois_dernier = _compter_periodes(documents)
    telechargements = journaux.filter(action='DOCUMENT_DOWNLOAD')
    vues = journaux.filter(action='DOCUMENT_VIEW')
    telechargements_ce_mois, telechargements_mois_dernier = _compter_periodes(telechargements)
    vues_ce_mois = vues.filter(date_creation__gte=debut_mois).count()

    titres = dict(documents.values_list('pk', 'titre'))
    activite = (
        journaux.filter(action__in=ACTIONS_APPRENTISSAGE, date_creation__gte=debut_mois)
        .select_related('utilisateur').order_by('-date_creation')[:10]
    )

    return {
        'stats': {
            'my_documents': documents.count(),
            'assigned_matieres': ProfesseurMatiere.objects.filter(professeur=professeur)
            .values('matiere').distinct().count(),
            'total_downloads': telechargements.count(),
            'total_views': vues.count(),
            'document_growth': croissance(documents_ce_mois, documents_mois_dernier),
            'download_growth': croissance(telechargements_ce_mois, telechargements_mois_dernier),
            'recent_comments': Commentaire.objects.filter(
                document__telecharge_par=professeur, document__is_deleted=False,
                is_deleted=False, date_creation__gte=debut_mois,
            ).count(),
            'documents_this_month': documents_ce_mois,
        },
        'popular_documents': list(
            documents.order_by('-download_count', '-view_count', '-date_creation')
            .values('id', 'titre', 'date_creation', 'download_count', 'view_count')[:5]
        ),
        'recent_activity': [
            {
                'id': a.pk,
                'action': a.action,
                'user': _nom_complet(a.utilisateur),
                'user_role': a.utilisateur.role if a.utilisateur else None,
                'date_creation': a.date_creation,
                'document_title': titres.get(int(a.ressource_id), 'Document supprimé'),
            }
            for a in activite
        ],
        'monthly_stats': {
            'documents_this_month': documents_ce_mois,
            'downloads_this_month': telechargements_ce_mois,
            'views_this_month': vues_ce_mois,
        },
    }


# ===============================
# ÉTUDIANT
# ===============================

def tableau_etudiant(etudiant):
    journaux = AuditLog.objects.filter(utilisateur=etudiant)
    vues = journaux.filter(action='DOCUMENT_VIEW')
    telechargements = journaux.filter(action='DOCUMENT_DOWNLOAD')
    vues_ce_mois, vues_mois_dernier = _compter_periodes(vues)
    telechargements_ce_mois, telechargements_mois_dernier = _compter_periodes(telechargements)

    favoris = list(
        vues.exclude(ressource_id__isnull=True).values('ressource_id')
        .annotate(total=Count('id')).order_by('-total')[:5]
    )
    recents = []
    for ligne in vues.exclude(ressource_id__isnull=True).order_by('-date_creation').values('ressource_id', 'date_creation'):
        if all(r['ressource_id'] != ligne['ressource_id'] for r in recents):
            recents.append(ligne)
        if len(recents) == 10:
            break

    identifiants = {int(l['ressource_id']) for l in favoris + recents}
    documents = {
        d.pk: d for d in Document.objects.filter(pk__in=identifiants).select_related('matiere', 'telecharge_par')
    }

    recommandes = documents_visibles(etudiant).select_related('matiere', 'telecharge_par').order_by('-date_creation')[:5]

    return {
        'stats': {
            'documents_viewed': vues.count(),
            'documents_downloaded': telechargements.count(),
            'views_this_month': vues_ce_mois,
            'downloads_this_month': telechargements_ce_mois,
            'view_growth': croissance(vues_ce_mois, vues_mois_dernier),
            'download_growth': croissance(telechargements_ce_mois, telechargements_mois_dernier),
            'learning_streak': serie_apprentissage(etudiant),
            'favorite_count': len(favoris),
        },
        'favorite_documents': [
            {**_resume_document(documents[int(l['ressource_id'])]), 'view_count': l['total']}
            for l in favoris if int(l['ressource_id']) in documents
        ],
        'recently_viewed': [
            {**_resume_document(documents[int(l['ressource_id'])]), 'viewed_at': l['date_creation']}
            for l in recents if int(l['ressource_id']) in documents
        ],
        'recommended_documents': [_resume_document(d) for d in recommandes],
        'learning_activity': {
            'this_month': vues_ce_mois + telechargements_ce_mois,
            'last_month': vues_mois_dernier + telechargements_mois_dernier,
            'total_activity': vues.count() + telechargements.count(),
        },
    }
