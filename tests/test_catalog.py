import httpx
import pytest

from catalog_admin.core.config import settings
from catalog_admin.core.errors import CatalogRequestFailure, UploadTransportFailure
from catalog_admin.remote import catalog, clients

from conftest import API_BASE, png_bytes


@pytest.mark.parametrize(
    "ref,expected",
    [
        ("64b7f0c2a1b2c3d4e5f60718", f"{API_BASE}/api/image/64b7f0c2a1b2c3d4e5f60718"),
        ("64B7F0C2A1B2C3D4E5F60718", f"{API_BASE}/api/image/64B7F0C2A1B2C3D4E5F60718"),
        ("https://cdn.test/a.png", "https://cdn.test/a.png"),
        ("http://cdn.test/a.png", "http://cdn.test/a.png"),
        ("/uploads/a.png", f"{API_BASE}/uploads/a.png"),
        ("uploads//a.png", f"{API_BASE}/uploads/a.png"),
        ("64b7f0c2a1b2", f"{API_BASE}/64b7f0c2a1b2"),
        ("", None),
        (None, None),
    ],
)
def test_image_src_classification_success(fake_api, ref, expected):
    assert catalog.image_src(ref) == expected


def test_image_src_trailing_slash_base_success(fake_api, monkeypatch):
    monkeypatch.setattr(settings, "api_base", f"{API_BASE}/")
    assert catalog.image_src("/x.png") == f"{API_BASE}/x.png"
    assert catalog.image_src("x.png") == f"{API_BASE}/x.png"


def test_upload_images_sends_parts_in_order_success(fake_api):
    data = png_bytes()
    body = catalog.upload_images([
        ("b.png", data, "image/png"),
        ("a.png", data, "image/png"),
        ("b.png", data, "image/png"),
    ])
    assert fake_api.uploads == [["b.png", "a.png", "b.png"]]
    assert [f["id"] for f in body["files"]] == ["up1", "up2", "up3"]


def test_upload_images_server_error_failure(fake_api):
    fake_api.upload_status = 503
    with pytest.raises(UploadTransportFailure) as exc:
        catalog.upload_images([("a.png", png_bytes(), "image/png")])
    assert exc.value.context["status_code"] == 503


def test_upload_images_network_error_failure(monkeypatch):
    def _refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    monkeypatch.setattr(
        clients, "catalog_client",
        lambda timeout=None: httpx.Client(base_url=API_BASE, transport=httpx.MockTransport(_refuse)),
    )
    with pytest.raises(UploadTransportFailure):
        catalog.upload_images([("a.png", b"x", "image/png")])


def test_upload_images_non_json_body_failure(monkeypatch):
    monkeypatch.setattr(
        clients, "catalog_client",
        lambda timeout=None: httpx.Client(
            base_url=API_BASE,
            transport=httpx.MockTransport(lambda request: httpx.Response(200, text="<html>ok</html>")),
        ),
    )
    with pytest.raises(UploadTransportFailure):
        catalog.upload_images([("a.png", b"x", "image/png")])


def test_list_products_accepts_wrapped_list_success(monkeypatch):
    monkeypatch.setattr(
        clients, "catalog_client",
        lambda timeout=None: httpx.Client(
            base_url=API_BASE,
            transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"products": [{"_id": "p1"}]})),
        ),
    )
    assert catalog.list_products("skincare") == [{"_id": "p1"}]


def test_get_product_unwraps_and_404_success(fake_api):
    fake_api.add_product("skincare", "p1", name="Serum")
    assert catalog.get_product("skincare", "p1")["name"] == "Serum"
    with pytest.raises(KeyError):
        catalog.get_product("skincare", "missing")


def test_save_and_delete_product_success(fake_api):
    created = catalog.save_product("haircare", {"name": "Oil", "images": []})
    product_id = created["_id"]
    catalog.save_product("haircare", {"price": 5}, product_id)
    assert fake_api.products["haircare"][product_id]["price"] == 5

    catalog.delete_product("haircare", product_id)
    assert product_id not in fake_api.products["haircare"]
    with pytest.raises(KeyError):
        catalog.delete_product("haircare", product_id)


def test_save_product_server_error_failure(fake_api):
    fake_api.save_status = 500
    with pytest.raises(CatalogRequestFailure):
        catalog.save_product("haircare", {"name": "Oil"})


def test_catalog_client_sends_token_success(monkeypatch):
    monkeypatch.setattr(settings, "api_base", API_BASE)
    monkeypatch.setattr(settings, "api_token", "secret")
    with clients.catalog_client() as client:
        assert client.headers["Authorization"] == "Bearer secret"
        assert str(client.base_url).rstrip("/") == API_BASE
