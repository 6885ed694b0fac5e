from fastapi.testclient import TestClient

from core.security import KEY_MASK, mask_key

# API URL prefix
API_PREFIX = "/api/credentials"


def test_mask_key():
    assert mask_key("sk-abcdefgh1234") == KEY_MASK + "1234"
    assert mask_key(None) == KEY_MASK

def test_credentials_require_auth(client: TestClient):
    assert client.get(API_PREFIX).status_code == 401
    assert client.put(API_PREFIX, json={"openai": "sk-x"}).status_code == 401

def test_empty_record(client: TestClient, auth_headers: dict):
    response = client.get(API_PREFIX, headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["updated_at"] is None
    assert all(not p["configured"] for p in data["providers"].values())

def test_save_merges_with_existing_keys(client: TestClient, auth_headers: dict):
    """
    PUT /api/credentials
    1. saving one provider's key keeps the others
    2. an empty value never clears a stored key
    3. keys only come back masked
    """
    # 1. two saves, different providers
    client.put(API_PREFIX, json={"openai": "sk-openai-key-1111"}, headers=auth_headers)
    response = client.put(API_PREFIX, json={"grok": "xai-grok-key-2222"}, headers=auth_headers)

    assert response.status_code == 200
    providers = response.json()["providers"]
    assert providers["openai"]["configured"] is True
    assert providers["grok"]["configured"] is True
    assert providers["deepseek"]["configured"] is False

    # 2. empty value is ignored
    response = client.put(API_PREFIX, json={"openai": ""}, headers=auth_headers)
    assert response.json()["providers"]["openai"]["configured"] is True

    # 3. masked
    providers = client.get(API_PREFIX, headers=auth_headers).json()["providers"]
    assert providers["openai"]["masked_key"] == KEY_MASK + "1111"
    assert providers["grok"]["masked_key"] == KEY_MASK + "2222"
    assert "sk-openai-key-1111" not in client.get(API_PREFIX, headers=auth_headers).text

def test_clear_one_provider(client: TestClient, auth_headers: dict):
    # nothing stored yet
    assert client.delete(f"{API_PREFIX}/openai", headers=auth_headers).status_code == 404

    client.put(
        API_PREFIX,
        json={"openai": "sk-openai-key-1111", "deepseek": "ds-key-3333"},
        headers=auth_headers
    )
    response = client.delete(f"{API_PREFIX}/openai", headers=auth_headers)

    assert response.status_code == 200
    providers = response.json()["providers"]
    assert providers["openai"]["configured"] is False
    assert providers["deepseek"]["configured"] is True

def test_clear_unknown_provider(client: TestClient, auth_headers: dict):
    assert client.delete(f"{API_PREFIX}/anthropic", headers=auth_headers).status_code == 422
