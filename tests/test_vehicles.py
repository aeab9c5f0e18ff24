"""Tests for vehicle management: service rules on SQLite and role checks over HTTP."""

import unittest

from fastapi.testclient import TestClient
from pydantic import ValidationError

from app.core.config import settings
from app.core.database import get_db
from app.core.exceptions import BadRequest, Conflict, NotFound
from app.core.security import hash_password
from app.main import app
from app.models.user import ROLE_ADMIN, ROLE_DRIVER, ROLE_FLEET_MANAGER, ROLE_USER
from app.schemas.vehicle import VehicleCreate, VehicleQuery, VehicleUpdate
from app.services.accounts import SqlAccountStore
from app.services.vehicles import VehicleService
from tests.fakes import override_get_db, sqlite_session_factory

PREFIX = settings.API_V1_PREFIX
PASSWORD = "Str0ng!pass"


def _vehicle(plate: str, **overrides) -> VehicleCreate:
    fields = {
        "plate_number": plate,
        "model": "Corolla",
        "manufacturer": "Toyota",
        "year": 2020,
        "type": "car",
    }
    fields.update(overrides)
    return VehicleCreate(**fields)


class VehicleServiceTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.session = sqlite_session_factory()()
        self.vehicles = VehicleService(self.session)
        self.accounts = SqlAccountStore(self.session)

    def tearDown(self) -> None:
        self.session.close()

    def account(self, email: str, role: str = ROLE_DRIVER) -> int:
        return self.accounts.create(email=email, password_hash="h", name="Driver", role=role).id


class TestVehicleSchemas(unittest.TestCase):
    def test_year_bounds(self) -> None:
        with self.assertRaises(ValidationError):
            _vehicle("ABC-1", year=1899)
        with self.assertRaises(ValidationError):
            _vehicle("ABC-1", year=2999)

    def test_blank_plate(self) -> None:
        with self.assertRaises(ValidationError):
            _vehicle("   ")

    def test_unknown_type(self) -> None:
        with self.assertRaises(ValidationError):
            _vehicle("ABC-1", type="spaceship")

    def test_update_rejects_null_required_field(self) -> None:
        with self.assertRaises(ValidationError):
            VehicleUpdate(model=None)
        self.assertIsNone(VehicleUpdate(driver_id=None).driver_id)

    def test_sort_by(self) -> None:
        self.assertEqual(VehicleQuery(sort_by="-year").sort_by, "-year")
        with self.assertRaises(ValidationError):
            VehicleQuery(sort_by="password_hash")


class TestCreateUpdateDelete(VehicleServiceTestCase):
    def test_plate_is_normalized_and_unique(self) -> None:
        vehicle = self.vehicles.create(_vehicle(" abc-123 "))
        self.assertEqual(vehicle.plate_number, "ABC-123")
        with self.assertRaises(Conflict):
            self.vehicles.create(_vehicle("ABC-123"))

    def test_get_unknown(self) -> None:
        with self.assertRaises(NotFound):
            self.vehicles.get(404)

    def test_partial_update(self) -> None:
        vehicle = self.vehicles.create(_vehicle("UPD-1"))
        updated = self.vehicles.update(vehicle.id, VehicleUpdate(year=2022, sim_number="8901"))
        self.assertEqual(updated.year, 2022)
        self.assertEqual(updated.sim_number, "8901")
        self.assertEqual(updated.model, "Corolla")

    def test_update_plate_conflict(self) -> None:
        self.vehicles.create(_vehicle("ONE-1"))
        second = self.vehicles.create(_vehicle("TWO-2"))
        with self.assertRaises(Conflict):
            self.vehicles.update(second.id, VehicleUpdate(plate_number="one-1"))
        # Same plate on the same vehicle is not a conflict.
        self.vehicles.update(second.id, VehicleUpdate(plate_number="two-2"))

    def test_delete(self) -> None:
        vehicle = self.vehicles.create(_vehicle("DEL-1"))
        deleted = self.vehicles.delete(vehicle.id)
        self.assertEqual(deleted.plate_number, "DEL-1")
        with self.assertRaises(NotFound):
            self.vehicles.get(vehicle.id)


class TestDriverAssignment(VehicleServiceTestCase):
    def test_assign_and_unassign(self) -> None:
        driver_id = self.account("dave@example.com")
        vehicle = self.vehicles.create(_vehicle("DRV-1"))
        assigned = self.vehicles.assign_driver(vehicle.id, driver_id)
        self.assertEqual(assigned.driver_id, driver_id)
        self.assertEqual(assigned.driver.email, "dave@example.com")
        unassigned = self.vehicles.unassign_driver(vehicle.id)
        self.assertIsNone(unassigned.driver_id)

    def test_unassign_without_driver(self) -> None:
        vehicle = self.vehicles.create(_vehicle("DRV-2"))
        with self.assertRaises(BadRequest):
            self.vehicles.unassign_driver(vehicle.id)

    def test_account_must_be_a_driver(self) -> None:
        manager_id = self.account("mgr@example.com", role=ROLE_FLEET_MANAGER)
        vehicle = self.vehicles.create(_vehicle("DRV-3"))
        with self.assertRaises(BadRequest):
            self.vehicles.assign_driver(vehicle.id, manager_id)

    def test_unknown_driver(self) -> None:
        vehicle = self.vehicles.create(_vehicle("DRV-4"))
        with self.assertRaises(NotFound):
            self.vehicles.assign_driver(vehicle.id, 999)

    def test_driver_has_one_vehicle(self) -> None:
        driver_id = self.account("eve@example.com")
        first = self.vehicles.create(_vehicle("DRV-5", driver_id=driver_id))
        second = self.vehicles.create(_vehicle("DRV-6"))
        with self.assertRaises(Conflict):
            self.vehicles.assign_driver(second.id, driver_id)
        with self.assertRaises(Conflict):
            self.vehicles.create(_vehicle("DRV-7", driver_id=driver_id))
        # Re-assigning to the vehicle the driver already has is fine.
        self.assertEqual(self.vehicles.assign_driver(first.id, driver_id).driver_id, driver_id)


class TestListVehicles(VehicleServiceTestCase):
    def setUp(self) -> None:
        super().setUp()
        driver_id = self.account("fay@example.com")
        self.vehicles.create(_vehicle("AAA-1", manufacturer="Toyota", year=2018))
        self.vehicles.create(_vehicle("BBB-2", manufacturer="Ford", model="Transit", type="van", year=2021))
        self.vehicles.create(
            _vehicle("CCC-3", manufacturer="Volvo", model="FH16", type="truck", year=2015, driver_id=driver_id)
        )

    def plates(self, **params) -> list[str]:
        return [v.plate_number for v in self.vehicles.list_vehicles(VehicleQuery(**params)).data]

    def test_filter_by_type(self) -> None:
        self.assertEqual(self.plates(type="van"), ["BBB-2"])

    def test_filter_by_manufacturer_partial(self) -> None:
        self.assertEqual(self.plates(manufacturer="vol"), ["CCC-3"])

    def test_assignment_status(self) -> None:
        self.assertEqual(self.plates(assignment_status="assigned"), ["CCC-3"])
        self.assertEqual(sorted(self.plates(assignment_status="unassigned")), ["AAA-1", "BBB-2"])

    def test_search(self) -> None:
        self.assertEqual(self.plates(search="transit"), ["BBB-2"])
        self.assertEqual(self.plates(search="aaa"), ["AAA-1"])

    def test_wildcards_are_literal(self) -> None:
        self.assertEqual(self.plates(search="%"), [])

    def test_sort(self) -> None:
        self.assertEqual(self.plates(sort_by="year"), ["CCC-3", "AAA-1", "BBB-2"])
        self.assertEqual(self.plates(sort_by="-plate_number"), ["CCC-3", "BBB-2", "AAA-1"])

    def test_pagination(self) -> None:
        page = self.vehicles.list_vehicles(VehicleQuery(page=2, limit=2, sort_by="plate_number"))
        self.assertEqual([v.plate_number for v in page.data], ["CCC-3"])
        self.assertEqual(page.pagination.total, 3)
        self.assertEqual(page.pagination.total_pages, 2)
        self.assertFalse(page.pagination.has_next_page)
        self.assertTrue(page.pagination.has_previous_page)

    def test_driver_details_included(self) -> None:
        page = self.vehicles.list_vehicles(VehicleQuery(assignment_status="assigned"))
        self.assertEqual(page.data[0].driver.email, "fay@example.com")


class TestVehicleApiRoles(unittest.TestCase):
    """Reads need any account, writes need admin or fleet manager, delete needs admin."""

    def setUp(self) -> None:
        self.factory = sqlite_session_factory()
        app.dependency_overrides[get_db] = override_get_db(self.factory)
        self.client = TestClient(app)
        self.headers = {
            role: self._login(f"{role}@example.com", role)
            for role in (ROLE_USER, ROLE_FLEET_MANAGER, ROLE_ADMIN)
        }

    def tearDown(self) -> None:
        app.dependency_overrides.clear()

    def _login(self, email: str, role: str) -> dict[str, str]:
        with self.factory() as session:
            SqlAccountStore(session).create(
                email=email, password_hash=hash_password(PASSWORD), name=role, role=role
            )
        response = self.client.post(f"{PREFIX}/auth/login", json={"email": email, "password": PASSWORD})
        return {"Authorization": f"Bearer {response.json()['access_token']}"}

    def _create(self, role: str, plate: str = "API-1"):
        return self.client.post(
            f"{PREFIX}/vehicles",
            json={"plate_number": plate, "model": "Sprinter", "manufacturer": "Mercedes", "year": 2019, "type": "van"},
            headers=self.headers[role],
        )

    def test_unauthenticated(self) -> None:
        self.assertEqual(self.client.get(f"{PREFIX}/vehicles").status_code, 401)

    def test_user_can_read_but_not_write(self) -> None:
        self.assertEqual(self._create(ROLE_USER).status_code, 403)
        listing = self.client.get(f"{PREFIX}/vehicles", headers=self.headers[ROLE_USER])
        self.assertEqual(listing.status_code, 200)
        self.assertEqual(listing.json()["pagination"]["total"], 0)

    def test_fleet_manager_manages_but_cannot_delete(self) -> None:
        created = self._create(ROLE_FLEET_MANAGER)
        self.assertEqual(created.status_code, 201, created.text)
        vehicle_id = created.json()["id"]
        patched = self.client.patch(
            f"{PREFIX}/vehicles/{vehicle_id}", json={"year": 2020}, headers=self.headers[ROLE_FLEET_MANAGER]
        )
        self.assertEqual(patched.status_code, 200)
        deleted = self.client.delete(f"{PREFIX}/vehicles/{vehicle_id}", headers=self.headers[ROLE_FLEET_MANAGER])
        self.assertEqual(deleted.status_code, 403)

    def test_admin_deletes(self) -> None:
        vehicle_id = self._create(ROLE_ADMIN).json()["id"]
        deleted = self.client.delete(f"{PREFIX}/vehicles/{vehicle_id}", headers=self.headers[ROLE_ADMIN])
        self.assertEqual(deleted.status_code, 200)
        self.assertEqual(deleted.json()["plate_number"], "API-1")
        missing = self.client.get(f"{PREFIX}/vehicles/{vehicle_id}", headers=self.headers[ROLE_USER])
        self.assertEqual(missing.status_code, 404)

    def test_duplicate_plate(self) -> None:
        self._create(ROLE_ADMIN, plate="dup-1")
        self.assertEqual(self._create(ROLE_ADMIN, plate="DUP-1").status_code, 409)

    def test_list_query_validation(self) -> None:
        response = self.client.get(
            f"{PREFIX}/vehicles", params={"limit": 500}, headers=self.headers[ROLE_USER]
        )
        self.assertEqual(response.status_code, 422)
