from decimal import Decimal

from django.test import TestCase
from rest_framework import status
from rest_framework.test import APIClient

from accounts.models import User
from assignment.models import Assignment
from fleet.models import Truck


class TruckAPITest(TestCase):
    """Integration tests for Truck API endpoints."""

    def setUp(self):
        self.client = APIClient()
        self.admin = User.objects.create(
            dni="10000001", name="Admin", lastname="Root", email="admin@example.com",
            role="admin", identity_subject="sub_admin",
        )
        self.driver = User.objects.create(
            dni="10000002", name="Rosa", lastname="Quispe", email="rosa@example.com",
            role="driver", identity_subject="sub_driver", license_number="Q1",
        )
        self.truck1 = Truck.objects.create(
            plate="AAA111", fuel_type="diesel_b5", capacity=Decimal("1000"), state="active",
        )
        self.truck2 = Truck.objects.create(
            plate="BBB222", fuel_type="gasoline_90", capacity=Decimal("500"), state="maintenance",
        )
        self.truck3 = Truck.objects.create(
            plate="CCC333", fuel_type="diesel_b5", capacity=Decimal("750"), state="assigned",
        )
        self.client.credentials(HTTP_X_IDENTITY_SUBJECT="sub_admin")

    def test_requests_without_identity_are_rejected(self):
        self.client.credentials()
        response = self.client.get('/api/fleet/trucks/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertIn('error', response.data)

    def test_get_all_trucks(self):
        response = self.client.get('/api/fleet/trucks/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 3)

    def test_filter_trucks_by_state(self):
        response = self.client.get('/api/fleet/trucks/', {'state': 'active'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['plate'], "AAA111")

    def test_filter_trucks_by_min_capacity(self):
        response = self.client.get('/api/fleet/trucks/', {'min_capacity': 800})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([t['plate'] for t in response.data], ["AAA111"])

    def test_invalid_min_capacity_is_ignored(self):
        response = self.client.get('/api/fleet/trucks/', {'min_capacity': 'lots'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 3)

    def test_filter_trucks_by_fuel_type(self):
        response = self.client.get('/api/fleet/trucks/', {'fuel_type': 'diesel_b5'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        plates = [t['plate'] for t in response.data]
        self.assertEqual(plates, ["AAA111", "CCC333"])

    def test_available_trucks(self):
        response = self.client.get('/api/fleet/trucks/', {'available': 'true'})
        self.assertEqual([t['plate'] for t in response.data], ["AAA111"])

    def test_create_truck_successfully(self):
        payload = {
            "plate": "ddd444",
            "fuel_type": "gasoline_95",
            "capacity": "1200.00",
        }
        response = self.client.post('/api/fleet/trucks/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["plate"], "DDD444")
        self.assertEqual(response.data["state"], "active")

    def test_create_truck_with_bad_plate(self):
        response = self.client.post(
            '/api/fleet/trucks/', {"plate": "A1", "capacity": "100"}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('plate', response.data['details'])

    def test_create_truck_with_zero_capacity(self):
        response = self.client.post(
            '/api/fleet/trucks/', {"plate": "EEE555", "capacity": "0"}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_new_truck_cannot_start_mid_dispatch(self):
        for state in ("discharging", "assigned", "in_transit"):
            response = self.client.post('/api/fleet/trucks/', {
                "plate": "ZZZ999", "fuel_type": "lpg", "capacity": "500", "state": state,
            }, format='json')
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
            self.assertIn('state', response.data['details'])
        self.assertFalse(Truck.objects.filter(plate="ZZZ999").exists())

    def test_new_truck_may_start_in_maintenance(self):
        response = self.client.post('/api/fleet/trucks/', {
            "plate": "ZZZ999", "capacity": "500", "state": "maintenance",
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["state"], "maintenance")

    def test_fuel_and_capacity_locked_during_open_assignment(self):
        Assignment.objects.create(
            truck=self.truck3, driver=self.driver, fuel_type="diesel_b5",
            total_loaded=Decimal("700"), total_remaining=Decimal("700"),
        )
        for payload in ({"fuel_type": "lpg"}, {"capacity": "300.00"}):
            response = self.client.patch(
                f'/api/fleet/trucks/{self.truck3.id}/', payload, format='json'
            )
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
            field = next(iter(payload))
            self.assertEqual(
                response.data['error'],
                f"Cannot change {field} while the truck has an open assignment.",
            )
        self.truck3.refresh_from_db()
        self.assertEqual(self.truck3.fuel_type, "diesel_b5")
        self.assertEqual(self.truck3.capacity, Decimal("750"))

        response = self.client.patch(
            f'/api/fleet/trucks/{self.truck3.id}/', {"notes": "left mirror cracked"}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_patch_cannot_change_state(self):
        response = self.client.patch(
            f'/api/fleet/trucks/{self.truck1.id}/', {"state": "maintenance"}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_patch_updates_details(self):
        response = self.client.patch(
            f'/api/fleet/trucks/{self.truck1.id}/', {"brand": "Scania"}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["brand"], "Scania")

    def test_change_state_action(self):
        response = self.client.post(
            f'/api/fleet/trucks/{self.truck2.id}/change_state/', {"state": "active"}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["state"], "active")

    def test_change_state_rejects_illegal_transition(self):
        response = self.client.post(
            f'/api/fleet/trucks/{self.truck2.id}/change_state/', {"state": "discharging"}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.truck2.refresh_from_db()
        self.assertEqual(self.truck2.state, "maintenance")

    def test_delete_truck_without_assignments(self):
        response = self.client.delete(f'/api/fleet/trucks/{self.truck2.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Truck.objects.filter(pk=self.truck2.id).exists())

    def test_delete_truck_with_assignments_is_refused(self):
        Assignment.objects.create(
            truck=self.truck3, driver=self.driver, fuel_type="diesel_b5",
            total_loaded=Decimal("100"), total_remaining=Decimal("100"),
        )
        response = self.client.delete(f'/api/fleet/trucks/{self.truck3.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Cannot delete truck with assignments')

    def test_driver_can_list_but_not_create(self):
        self.client.credentials(HTTP_X_IDENTITY_SUBJECT="sub_driver")
        response = self.client.get('/api/fleet/trucks/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        response = self.client.post(
            '/api/fleet/trucks/', {"plate": "FFF666", "capacity": "100"}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_driver_cannot_change_state(self):
        self.client.credentials(HTTP_X_IDENTITY_SUBJECT="sub_driver")
        response = self.client.post(
            f'/api/fleet/trucks/{self.truck2.id}/change_state/', {"state": "active"}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_driver_selects_active_truck(self):
        self.client.credentials(HTTP_X_IDENTITY_SUBJECT="sub_driver")
        response = self.client.post(f'/api/fleet/trucks/{self.truck1.id}/select/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["state"], "assigned")
        self.assertEqual(response.data["selected_by"], self.driver.id)

        response = self.client.post(f'/api/fleet/trucks/{self.truck2.id}/select/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_admin_cannot_select_truck(self):
        response = self.client.post(f'/api/fleet/trucks/{self.truck1.id}/select/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Only drivers can select a truck')
