from locust import HttpUser, task, between, events
import random
import os
import requests

PARTICIPANTS = []


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    from dotenv import load_dotenv
    load_dotenv()

    admin_pwd = os.getenv("ADMIN_PASSWORD")
    base_url = os.getenv("LOCUST_HOST")

    print("Seeding participants...")
    session = requests.Session()
    response = session.post(
        f"{base_url}/api/v1/auth/admin/login",
        json={"password": admin_pwd, "name": "Load Test"}
    )
    if response.status_code != 200:
        raise RuntimeError(f"Failed to login as admin in test setup: {response.status_code} {response.text}")

    for i in range(50):
        birth_date = f"19{random.randint(50, 99)}-{random.randint(1, 12):02d}-{random.randint(1, 28):02d}"
        create_response = session.post(
            f"{base_url}/api/v1/participants",
            json={"name": f"Load Participant{i}", "birth_date": birth_date}
        )
        if create_response.status_code != 201:
            raise RuntimeError(f"Failed to create participant {i+1} in test setup: {create_response.status_code} {create_response.text}")
        data = create_response.json()
        PARTICIPANTS.append((data["id"], data["lookup_key"]))


class ScannerStation(HttpUser):
    """A staff scanner toggling participants in and out."""
    wait_time = between(0.5, 1.5)

    def on_start(self):
        self.client.post(
            "/api/v1/auth/admin/login",
            json={"password": os.getenv("ADMIN_PASSWORD"), "name": "Scanner"},
            name="POST /api/v1/auth/admin/login",
        )

    @task(3)
    def scan_and_toggle(self):
        if not PARTICIPANTS:
            return

        participant_id, key = random.choice(PARTICIPANTS)
        with self.client.post(
            "/api/v1/checkin/scan",
            json={"payload": f"KEY:{key}"},
            name="POST /api/v1/checkin/scan",
            catch_response=True
        ) as scan_response:
            if scan_response.status_code != 200:
                scan_response.failure(f"Scan failed for {key}  {scan_response.text}")
                return

        with self.client.post(
            f"/api/v1/participants/{participant_id}/toggle",
            name="POST /api/v1/participants/<id>/toggle",
            catch_response=True
        ) as toggle_response:
            # Two stations racing on one badge is expected to yield 409
            if toggle_response.status_code not in (200, 409):
                toggle_response.failure(f"Toggle failed for {participant_id}  {toggle_response.text}")

    @task(1)
    def attendance(self):
        if not PARTICIPANTS:
            return

        participant_id, _ = random.choice(PARTICIPANTS)
        self.client.get(
            f"/api/v1/participants/{participant_id}",
            name="GET /api/v1/participants/<id>",
        )


class Registrant(HttpUser):
    """A member of the public looking up a registration by code."""
    wait_time = between(1, 3)

    @task
    def lookup(self):
        code = "".join(random.choice("ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789") for _ in range(8))
        with self.client.post(
            "/api/v1/registrations/lookup",
            json={"code": code},
            name="POST /api/v1/registrations/lookup",
            catch_response=True
        ) as lookup_response:
            # Unknown codes and admission rejections are the normal outcome here
            if lookup_response.status_code in (404, 429):
                lookup_response.success()
            elif lookup_response.status_code != 200:
                lookup_response.failure(f"Lookup failed  {lookup_response.text}")
