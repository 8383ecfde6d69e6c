from decimal import Decimal

from django.test import TestCase
from rest_framework import status
from rest_framework.test import APIClient

from accounts.models import User
from assignment.models import Assignment
from assignment.services import ledger
from customers.models import Customer
from fleet.models import Truck


class AssignmentAPITest(TestCase):
    """Integration tests for Assignment API endpoints."""

    def setUp(self):
        self.client = APIClient()
        self.admin = User.objects.create(
            dni="60000001", name="Admin", lastname="Root", email="admin@example.com",
            role="admin", identity_subject="sub_admin",
        )
        self.driver = User.objects.create(
            dni="60000002", name="Rosa", lastname="Quispe", email="rosa@example.com",
            identity_subject="sub_rosa", license_number="Q1",
        )
        self.other_driver = User.objects.create(
            dni="60000003", name="Luis", lastname="Ramos", email="luis@example.com",
            identity_subject="sub_luis", license_number="R1",
        )
        self.truck = Truck.objects.create(
            plate="AAA111", fuel_type="diesel_b5", capacity=Decimal("1000"),
        )
        self.customer_a = Customer.objects.create(
            company_name="Grifo Norte", tax_id="20123456781", address="Av. Industrial 123",
        )
        self.customer_b = Customer.objects.create(
            company_name="Minera Sur", tax_id="20987654321", address="Km 45 Panamericana",
        )
        self.client.credentials(HTTP_X_IDENTITY_SUBJECT="sub_admin")

    def _payload(self, **overrides):
        payload = {
            "truck_id": self.truck.id,
            "driver_id": self.driver.id,
            "total_loaded": "1000.00",
            "customers": [self.customer_a.id, self.customer_b.id],
        }
        payload.update(overrides)
        return payload

    def _dispatch(self, driver=None):
        return ledger.create_assignment(
            truck_id=self.truck.id,
            driver_id=(driver or self.driver).id,
            total_loaded=Decimal("1000"),
            customer_ids=[self.customer_a.id, self.customer_b.id],
        )

    def test_create_assignment(self):
        response = self.client.post('/api/assignments/', self._payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['total_loaded'], '1000.00')
        self.assertEqual(response.data['total_remaining'], '1000.00')
        self.assertFalse(response.data['is_completed'])
        self.assertEqual(response.data['truck']['state'], 'assigned')
        self.assertEqual(response.data['driver']['id'], self.driver.id)
        self.assertEqual(len(response.data['discharges']), 2)
        for discharge in response.data['discharges']:
            self.assertFalse(discharge['is_recorded'])

    def test_create_with_empty_customer_list(self):
        response = self.client.post('/api/assignments/', self._payload(customers=[]), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('customers', response.data['details'])
        self.assertEqual(Assignment.objects.count(), 0)

    def test_create_over_capacity(self):
        response = self.client.post(
            '/api/assignments/', self._payload(total_loaded="1500.00"), format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Load exceeds the truck capacity.')
        self.assertIn('total_loaded', response.data['details'])

    def test_create_for_busy_truck(self):
        self._dispatch()
        response = self.client.post('/api/assignments/', self._payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('open assignment', response.data['error'])

    def test_create_with_unknown_truck(self):
        response = self.client.post('/api/assignments/', self._payload(truck_id=9999), format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error'], 'Truck not found')

    def test_driver_cannot_create_assignment(self):
        self.client.credentials(HTTP_X_IDENTITY_SUBJECT="sub_rosa")
        response = self.client.post('/api/assignments/', self._payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_assignments_are_not_editable(self):
        assignment = self._dispatch()
        response = self.client.patch(
            f'/api/assignments/{assignment.id}/', {"total_remaining": "5.00"}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_405_METHOD_NOT_ALLOWED)

    def test_filter_by_completion(self):
        self._dispatch()
        response = self.client.get('/api/assignments/', {'is_completed': 'false'})
        self.assertEqual(len(response.data), 1)
        response = self.client.get('/api/assignments/', {'is_completed': 'true'})
        self.assertEqual(len(response.data), 0)

    def test_driver_lists_only_own_assignments(self):
        assignment = self._dispatch()

        self.client.credentials(HTTP_X_IDENTITY_SUBJECT="sub_rosa")
        response = self.client.get('/api/assignments/')
        self.assertEqual([a['id'] for a in response.data], [assignment.id])
        response = self.client.get('/api/assignments/mine/')
        self.assertEqual([a['id'] for a in response.data], [assignment.id])

        self.client.credentials(HTTP_X_IDENTITY_SUBJECT="sub_luis")
        response = self.client.get('/api/assignments/')
        self.assertEqual(response.data, [])
        response = self.client.get(f'/api/assignments/{assignment.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_complete_with_pending_discharges(self):
        assignment = self._dispatch()
        response = self.client.post(f'/api/assignments/{assignment.id}/complete/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], '2 discharge(s) are still pending')

    def test_complete_after_all_discharges(self):
        assignment = self._dispatch()
        for customer, end in ((self.customer_a, 300), (self.customer_b, 700)):
            ledger.record_discharge(
                assignment_id=assignment.id, customer_id=customer.id,
                start_marker=0, end_marker=end,
            )
        response = self.client.post(f'/api/assignments/{assignment.id}/complete/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['is_completed'])
        self.assertEqual(response.data['truck']['state'], 'active')

    def test_driver_cannot_complete(self):
        assignment = self._dispatch()
        self.client.credentials(HTTP_X_IDENTITY_SUBJECT="sub_rosa")
        response = self.client.post(f'/api/assignments/{assignment.id}/complete/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_driver_starts_discharge(self):
        assignment = self._dispatch()
        self.client.credentials(HTTP_X_IDENTITY_SUBJECT="sub_rosa")
        response = self.client.post(f'/api/assignments/{assignment.id}/start_discharge/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['truck_state'], 'discharging')
