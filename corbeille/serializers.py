# corbeille/serializers.py
from rest_framework import serializers

from documents.models import Document
from .services import jours_avant_suppression


class DocumentCorbeilleSerializer(serializers.ModelSerializer):
    telecharge_par = serializers.SerializerMethodField()
    deleted_by = serializers.SerializerMethodField()
    matiere = serializers.SerializerMethodField()
    days_until_permanent_deletion = serializers.SerializerMethodField()

    class Meta:
        model = Document
        fields = [
            'id', 'titre', 'description', 'categorie', 'nom_fichier', 'taille_fichier',
            'matiere', 'telecharge_par', 'deleted_by', 'deleted_at', 'days_until_permanent_deletion',
            'date_creation',
        ]

    def get_telecharge_par(self, obj):
        return {'id': obj.telecharge_par_id, 'prenom': obj.telecharge_par.prenom, 'nom': obj.telecharge_par.nom}

    def get_deleted_by(self, obj):
        if obj.deleted_by is None:
            return None
        return {'id': obj.deleted_by_id, 'prenom': obj.deleted_by.prenom, 'nom': obj.deleted_by.nom}

    def get_matiere(self, obj):
        if obj.matiere is None:
            return None
        return {'id': obj.matiere_id, 'nom': obj.matiere.nom, 'code': obj.matiere.code}

    def get_days_until_permanent_deletion(self, obj):
        return jours_avant_suppression(obj)
