import importlib
import os
from unittest import mock

from django.test import SimpleTestCase
from rest_framework import status
from rest_framework.test import APITestCase

from . import settings as module_settings


class SanteTests(APITestCase):

    def test_sante_sans_authentification(self):
        response = self.client.get('/api/health')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'OK')
        self.assertIn('timestamp', response.data)


class ConfigurationTests(SimpleTestCase):

    def tearDown(self):
        importlib.reload(module_settings)

    def test_chemin_base_de_donnees(self):
        with mock.patch.dict(os.environ, {'DATABASE': '/tmp/isi_archive.sqlite3'}):
            importlib.reload(module_settings)

        self.assertEqual(module_settings.DATABASES['default']['NAME'], '/tmp/isi_archive.sqlite3')
