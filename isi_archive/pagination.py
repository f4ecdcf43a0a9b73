from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


class PaginationStandard(PageNumberPagination):
    """Pagination ?page=&limit= avec l'enveloppe de réponse de l'API"""
    page_size = 20
    page_query_param = 'page'
    page_size_query_param = 'limit'
    max_page_size = 100
    message = 'Données récupérées avec succès'

    def get_paginated_response(self, data):
        total = self.page.paginator.count
        limite = self.get_page_size(self.request)
        return Response({
            'success': True,
            'message': self.message,
            'data': data,
            'pagination': {
                'page': self.page.number,
                'limit': limite,
                'total': total,
                'pages': self.page.paginator.num_pages if total else 0,
            }
        })


class PaginationUtilisateurs(PaginationStandard):
    page_size = 10
    message = 'Utilisateurs récupérés avec succès'


class PaginationDocuments(PaginationStandard):
    message = 'Documents récupérés avec succès'


class PaginationCommentaires(PaginationStandard):
    max_page_size = 50
    message = 'Commentaires récupérés avec succès'


class PaginationJournaux(PaginationStandard):
    page_size = 50
    message = "Journaux d'audit récupérés avec succès"
