from decimal import Decimal

from django.test import TestCase
from rest_framework import status
from rest_framework.test import APIClient

from accounts.models import User
from assignment.models import Assignment, Discharge
from customers.models import Customer
from fleet.models import Truck


class CustomerAPITest(TestCase):
    """Integration tests for Customer API endpoints."""

    def setUp(self):
        self.client = APIClient()
        self.admin = User.objects.create(
            dni="20000001", name="Admin", lastname="Root", email="admin@example.com",
            role="admin", identity_subject="sub_admin",
        )
        self.driver = User.objects.create(
            dni="20000002", name="Luis", lastname="Ramos", email="luis@example.com",
            identity_subject="sub_driver", license_number="R1",
        )
        self.customer = Customer.objects.create(
            company_name="Grifo Norte", tax_id="20123456781", address="Av. Industrial 123",
        )
        self.client.credentials(HTTP_X_IDENTITY_SUBJECT="sub_admin")

    def test_list_customers(self):
        response = self.client.get('/api/customers/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['tax_id'], "20123456781")

    def test_search_customers(self):
        Customer.objects.create(
            company_name="Minera Sur", tax_id="20987654321", address="Km 45 Panamericana",
        )
        response = self.client.get('/api/customers/', {'search': 'Minera'})
        self.assertEqual([c['company_name'] for c in response.data], ["Minera Sur"])

    def test_create_customer(self):
        payload = {
            "company_name": "Transportes Lima",
            "tax_id": "20555555551",
            "address": "Jr. Comercio 45",
            "contact_email": "ops@tlima.pe",
        }
        response = self.client.post('/api/customers/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(Customer.objects.filter(tax_id="20555555551").exists())

    def test_tax_id_must_have_eleven_digits(self):
        for tax_id in ("1234", "2012345678A"):
            response = self.client.post('/api/customers/', {
                "company_name": "Bad Co", "tax_id": tax_id, "address": "Somewhere 1",
            }, format='json')
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
            self.assertIn('tax_id', response.data['details'])

    def test_duplicate_tax_id_rejected(self):
        response = self.client.post('/api/customers/', {
            "company_name": "Copy Co", "tax_id": "20123456781", "address": "Somewhere 1",
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_unused_customer(self):
        response = self.client.delete(f'/api/customers/{self.customer.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

    def test_delete_customer_with_discharges_is_refused(self):
        truck = Truck.objects.create(plate="AAA111", capacity=Decimal("1000"))
        assignment = Assignment.objects.create(
            truck=truck, driver=self.driver, fuel_type="diesel_b5",
            total_loaded=Decimal("100"), total_remaining=Decimal("100"),
        )
        Discharge.objects.create(assignment=assignment, customer=self.customer)

        response = self.client.delete(f'/api/customers/{self.customer.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Cannot delete customer with discharge records')
        self.assertTrue(Customer.objects.filter(pk=self.customer.id).exists())

    def test_driver_reads_but_cannot_write(self):
        self.client.credentials(HTTP_X_IDENTITY_SUBJECT="sub_driver")
        response = self.client.get(f'/api/customers/{self.customer.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        response = self.client.patch(
            f'/api/customers/{self.customer.id}/', {"address": "New Street 99"}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        response = self.client.delete(f'/api/customers/{self.customer.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
