import os, sys, re, json
from io import BytesIO

import httpx
import pytest
from PIL import Image

# Ensure project root on sys.path so `import catalog_admin...` works
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from catalog_admin.core.config import settings
from catalog_admin.remote import clients

API_BASE = "http://catalog.test"


def png_bytes(size=(2, 2), color=(255, 0, 0)) -> bytes:
    img = Image.new("RGB", size, color=color)
    buf = BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


class FakeCatalogApi:
    """Stand-in for the remote catalog API behind an httpx.MockTransport."""

    def __init__(self):
        self.products = {"haircare": {}, "skincare": {}}
        self.requests = []
        self.uploads = []
        self.offer_images = []
        self.saves = []
        self.upload_status = 200
        self.upload_body = None
        self.save_status = 200
        self.users = {"admin@shop.test": {"password": "pw", "isAdmin": True, "token": "tok-admin"}}
        self._counter = 0

    def add_product(self, category, product_id, **fields):
        product = {"_id": product_id, **fields}
        self.products[category][product_id] = product
        return product

    def _upload(self, request):
        body = request.read().decode("latin-1")
        names = re.findall(r'name="images"; filename="([^"]*)"', body)
        single = re.findall(r'name="image"; filename="([^"]*)"', body)
        if single:
            self.offer_images.extend(single)
            names = single
        else:
            self.uploads.append(names)
        if self.upload_status >= 400:
            return httpx.Response(self.upload_status, json={"error": "boom"})
        if self.upload_body is not None:
            return httpx.Response(200, json=self.upload_body)
        files = []
        for name in names:
            self._counter += 1
            files.append({"id": f"up{self._counter}", "filename": name})
        return httpx.Response(200, json={"files": files})

    def handler(self, request: httpx.Request) -> httpx.Response:
        method, path = request.method, request.url.path
        self.requests.append((method, path))
        parts = [p for p in path.split("/") if p]

        if path == "/api/upload" and method == "POST":
            return self._upload(request)
        if path == "/api/admin/login" and method == "POST":
            creds = json.loads(request.content)
            user = self.users.get(creds.get("email"))
            if not user or user["password"] != creds.get("password"):
                return httpx.Response(401, json={"message": "Invalid credentials"})
            return httpx.Response(200, json={"token": user["token"], "isAdmin": user["isAdmin"]})
        if path == "/api/admin/register" and method == "POST":
            body = json.loads(request.content)
            if body.get("email") in self.users:
                return httpx.Response(400, json={"message": "Admin already exists"})
            self.users[body["email"]] = {"password": body["password"], "isAdmin": True, "token": f"tok-{body['name']}"}
            return httpx.Response(201, json={"message": "Admin registered successfully"})

        if len(parts) >= 2 and parts[0] == "api" and parts[1] in self.products:
            store = self.products[parts[1]]
            if len(parts) == 2 and method == "GET":
                return httpx.Response(200, json=list(store.values()))
            if len(parts) == 2 and method == "POST":
                if self.save_status >= 400:
                    return httpx.Response(self.save_status)
                payload = json.loads(request.content)
                self.saves.append((method, path, payload))
                self._counter += 1
                product = self.add_product(parts[1], f"p{self._counter}", **payload)
                return httpx.Response(201, json=product)
            if len(parts) == 2:
                return httpx.Response(405)
            product_id = parts[2]
            if product_id not in store:
                return httpx.Response(404, json={"message": "Not found"})
            if method == "GET":
                return httpx.Response(200, json=store[product_id])
            if method == "PUT":
                if self.save_status >= 400:
                    return httpx.Response(self.save_status)
                payload = json.loads(request.content)
                self.saves.append((method, path, payload))
                store[product_id].update(payload)
                return httpx.Response(200, json=store[product_id])
            if method == "DELETE":
                del store[product_id]
                return httpx.Response(200, json={"message": "Deleted"})

        return httpx.Response(404)

    def upload_count(self):
        return sum(1 for r in self.requests if r == ("POST", "/api/upload"))


@pytest.fixture
def fake_api(monkeypatch):
    api = FakeCatalogApi()
    monkeypatch.setattr(settings, "api_base", API_BASE)
    monkeypatch.setattr(settings, "api_token", None)
    monkeypatch.setattr(settings, "partial_upload_policy", "degrade")

    def _client(timeout=None):
        return httpx.Client(base_url=API_BASE, transport=httpx.MockTransport(api.handler))

    monkeypatch.setattr(clients, "catalog_client", _client)
    return api
