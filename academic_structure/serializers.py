# academic_structure/serializers.py
from rest_framework import serializers

from .models import Niveau, Filiere, Semestre, Matiere, ProfesseurMatiere


class NiveauResumeSerializer(serializers.ModelSerializer):
    class Meta:
        model = Niveau
        fields = ['id', 'nom', 'type', 'ordre']


class SemestreSerializer(serializers.ModelSerializer):
    class Meta:
        model = Semestre
        fields = ['id', 'nom', 'niveau', 'ordre']


class FiliereResumeSerializer(serializers.ModelSerializer):
    class Meta:
        model = Filiere
        fields = ['id', 'nom', 'code', 'niveau']


class NiveauSerializer(serializers.ModelSerializer):
    """Niveau avec ses filières actives et ses semestres"""
    filieres = serializers.SerializerMethodField()
    semestres = SemestreSerializer(many=True, read_only=True)

    class Meta:
        model = Niveau
        fields = ['id', 'nom', 'type', 'ordre', 'filieres', 'semestres']

    def get_filieres(self, obj):
        filieres = [f for f in obj.filieres.all() if not f.is_deleted]
        return FiliereResumeSerializer(filieres, many=True).data


class FiliereSerializer(serializers.ModelSerializer):
    niveau = NiveauResumeSerializer(read_only=True)
    niveau_id = serializers.PrimaryKeyRelatedField(
        queryset=Niveau.objects.all(),
        write_only=True,
        source='niveau',
        error_messages={'does_not_exist': 'Niveau non trouvé'},
    )
    nombre_matieres = serializers.SerializerMethodField()
    nombre_etudiants = serializers.SerializerMethodField()

    class Meta:
        model = Filiere
        fields = [
            'id', 'nom', 'code', 'niveau', 'niveau_id', 'nombre_matieres', 'nombre_etudiants',
            'is_deleted', 'deleted_at', 'date_creation', 'date_modification',
        ]
        read_only_fields = ['id', 'is_deleted', 'deleted_at', 'date_creation', 'date_modification']
        extra_kwargs = {
            'nom': {'max_length': 100, 'error_messages': {'blank': 'Le nom est requis'}},
            'code': {'max_length': 20, 'validators': []},
        }

    def get_nombre_matieres(self, obj):
        return obj.matieres.filter(is_deleted=False).count()

    def get_nombre_etudiants(self, obj):
        return obj.utilisateurs.filter(role='etudiant', is_active=True).count()

    def validate_code(self, value):
        """Le code d'une filière est unique, filières supprimées comprises"""
        value = value.strip().upper()
        queryset = Filiere.objects.filter(code__iexact=value)
        if self.instance:
            queryset = queryset.exclude(pk=self.instance.pk)
        if queryset.exists():
            raise serializers.ValidationError('Une filière avec ce code existe déjà')
        return value


class MatiereSerializer(serializers.ModelSerializer):
    filiere = FiliereResumeSerializer(read_only=True)
    semestre = SemestreSerializer(read_only=True)
    filiere_id = serializers.PrimaryKeyRelatedField(
        queryset=Filiere.objects.filter(is_deleted=False),
        write_only=True,
        source='filiere',
        error_messages={'does_not_exist': 'Filière non trouvée'},
    )
    semestre_id = serializers.PrimaryKeyRelatedField(
        queryset=Semestre.objects.all(),
        write_only=True,
        source='semestre',
        error_messages={'does_not_exist': 'Semestre non trouvé'},
    )
    professeurs = serializers.SerializerMethodField()
    nombre_documents = serializers.SerializerMethodField()

    class Meta:
        model = Matiere
        fields = [
            'id', 'nom', 'code', 'filiere', 'filiere_id', 'semestre', 'semestre_id',
            'professeurs', 'nombre_documents', 'is_deleted', 'deleted_at',
            'date_creation', 'date_modification',
        ]
        read_only_fields = ['id', 'is_deleted', 'deleted_at', 'date_creation', 'date_modification']
        extra_kwargs = {
            'nom': {'max_length': 100},
            'code': {'max_length': 20},
        }
        validators = []

    def get_professeurs(self, obj):
        return [
            {
                'id': a.professeur_id,
                'prenom': a.professeur.prenom,
                'nom': a.professeur.nom,
                'role': a.role,
            }
            for a in obj.affectations.all()
        ]

    def get_nombre_documents(self, obj):
        return obj.documents.filter(is_deleted=False).count()

    def validate(self, attrs):
        filiere = attrs.get('filiere', getattr(self.instance, 'filiere', None))
        semestre = attrs.get('semestre', getattr(self.instance, 'semestre', None))
        code = attrs.get('code', getattr(self.instance, 'code', None))

        if filiere and semestre and semestre.niveau_id != filiere.niveau_id:
            raise serializers.ValidationError({'semestre_id': 'Le semestre doit appartenir au niveau de la filière'})

        if filiere and code:
            code = code.strip().upper()
            attrs['code'] = code
            queryset = Matiere.objects.filter(code__iexact=code, filiere=filiere)
            if self.instance:
                queryset = queryset.exclude(pk=self.instance.pk)
            existante = queryset.first()
            if existante is not None:
                if existante.is_deleted:
                    raise serializers.ValidationError(
                        {'code': 'Une matière supprimée utilise déjà ce code dans cette filière, restaurez-la'}
                    )
                raise serializers.ValidationError({'code': 'Une matière avec ce code existe déjà dans cette filière'})
        return attrs


class AffectationSerializer(serializers.Serializer):
    matiere_id = serializers.PrimaryKeyRelatedField(
        queryset=Matiere.objects.filter(is_deleted=False),
        source='matiere',
        error_messages={'does_not_exist': 'Matière non trouvée'},
    )
    role = serializers.ChoiceField(
        choices=ProfesseurMatiere.ROLE_CHOICES,
        default='cours',
        error_messages={'invalid_choice': 'Le rôle doit être cours, td ou tp'},
    )


class AffectationProfesseurSerializer(serializers.Serializer):
    professeur_id = serializers.IntegerField()
    roles = serializers.ListField(
        child=serializers.ChoiceField(choices=ProfesseurMatiere.ROLE_CHOICES),
        min_length=1,
    )


class AffectationsMatiereSerializer(serializers.Serializer):
    """Remplacement complet des professeurs d'une matière"""
    professeurs = AffectationProfesseurSerializer(many=True)

    def validate_professeurs(self, value):
        roles_vus = set()
        for affectation in value:
            for role in affectation['roles']:
                if role in roles_vus:
                    raise serializers.ValidationError(
                        f"Le rôle {role} ne peut être attribué qu'à un seul professeur"
                    )
                roles_vus.add(role)
        return value
