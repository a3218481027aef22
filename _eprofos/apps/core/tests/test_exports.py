from io import BytesIO

import openpyxl
from django.test import SimpleTestCase
from reportlab.platypus import Paragraph

from apps.core.exceptions import (
    ComplianceException, EprofosException, InvalidStatusTransition, custom_exception_handler
)
from apps.core.exports import write_csv, write_excel, build_pdf, add_pdf_header
from rest_framework.exceptions import PermissionDenied, ValidationError


class ExportsTest(SimpleTestCase):
    def test_csv_has_bom_and_semicolons(self):
        response = write_csv('formations.csv', ['Nom', 'Prix'], [['Python', 1500]])
        self.assertEqual(response['Content-Type'], 'text/csv; charset=utf-8')
        self.assertIn('formations.csv', response['Content-Disposition'])
        self.assertTrue(response.content.startswith(b'\xef\xbb\xbf'))
        self.assertEqual(response.content.decode('utf-8-sig').splitlines(), ['Nom;Prix', 'Python;1500'])

    def test_excel_workbook(self):
        response = write_excel('contrats.xlsx', 'Contrats', ['Numéro', 'Statut'], [['ALT-1', 'Actif']])
        workbook = openpyxl.load_workbook(BytesIO(response.content))
        sheet = workbook.active
        self.assertEqual(sheet.title, 'Contrats')
        self.assertEqual(sheet['A1'].value, 'Numéro')
        self.assertTrue(sheet['A1'].font.bold)
        self.assertEqual(sheet['B2'].value, 'Actif')

    def test_pdf_is_built(self):
        def builder(elements, styles):
            add_pdf_header(elements, "Planning", styles, subtitle="Session de test")
            elements.append(Paragraph("Contenu", styles['EprofosBody']))

        pdf = build_pdf("Planning", builder)
        self.assertTrue(pdf.startswith(b'%PDF'))


class ExceptionHandlerTest(SimpleTestCase):
    def test_business_error(self):
        response = custom_exception_handler(InvalidStatusTransition("Transition interdite"), {})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data, {'success': False, 'error': "Transition interdite"})

    def test_transition_keeps_statuses(self):
        exc = InvalidStatusTransition("Transition interdite", current='draft', target='completed')
        self.assertIsInstance(exc, EprofosException)
        self.assertEqual((exc.current, exc.target), ('draft', 'completed'))

    def test_compliance_details(self):
        exc = ComplianceException("Contrat non conforme", errors=["Tuteur manquant"])
        response = custom_exception_handler(exc, {})
        self.assertEqual(response.data['details'], ["Tuteur manquant"])

    def test_drf_errors_are_wrapped(self):
        response = custom_exception_handler(PermissionDenied(), {})
        self.assertEqual(response.status_code, 403)
        self.assertFalse(response.data['success'])

        response = custom_exception_handler(ValidationError({'status': ['Obligatoire']}), {})
        self.assertEqual(response.data['error'], 'Requête invalide')
        self.assertEqual(response.data['details'], {'status': ['Obligatoire']})
