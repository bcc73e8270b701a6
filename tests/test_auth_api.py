from tests.conftest import register


class TestRegister:

    def test_register_returns_token_for_new_user(self, client, tokens, db):
        response = client.post("/api/auth/register", json={"email": "alice@example.com", "password": "pw"})
        assert response.status_code == 200
        user_id = tokens.verify(response.json()["token"])
        stored = db["user"].find_one({"email": "alice@example.com"})
        assert str(stored["_id"]) == user_id
        assert stored["password_hash"] != "pw"

    def test_duplicate_email_is_conflict_and_keeps_first_user(self, client, db):
        register(client, "alice@example.com", "first")
        before = db["user"].find_one({"email": "alice@example.com"})

        response = client.post("/api/auth/register", json={"email": "alice@example.com", "password": "second"})

        assert response.status_code == 400
        assert response.json() == {"message": "User already exists"}
        assert db["user"].count_documents({}) == 1
        assert db["user"].find_one({"email": "alice@example.com"}) == before

    def test_email_is_case_sensitive(self, client, db):
        register(client, "alice@example.com")
        register(client, "Alice@example.com")
        assert db["user"].count_documents({}) == 2

    def test_missing_password_is_bad_request(self, client):
        response = client.post("/api/auth/register", json={"email": "alice@example.com"})
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid request"


class TestLogin:

    def test_login_returns_token_for_same_identity(self, client, tokens):
        registered = register(client, "alice@example.com", "pw")
        response = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "pw"})
        assert response.status_code == 200
        assert tokens.verify(response.json()["token"]) == tokens.verify(registered["Authorization"])

    def test_wrong_password(self, client):
        register(client, "alice@example.com", "pw")
        response = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "nope"})
        assert response.status_code == 400
        assert response.json() == {"message": "Invalid password"}
        assert "token" not in response.json()

    def test_unknown_email(self, client):
        response = client.post("/api/auth/login", json={"email": "ghost@example.com", "password": "pw"})
        assert response.status_code == 400
        assert response.json() == {"message": "User not found"}


class TestOversizedPasswords:
    """Passwords past the hashing limit are a client error, never a crash."""

    def test_register_rejects_oversized_password(self, client, db):
        response = client.post("/api/auth/register", json={"email": "alice@example.com", "password": "x" * 5000})
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid request"
        assert db["user"].count_documents({}) == 0

    def test_login_rejects_oversized_password(self, client):
        register(client, "alice@example.com", "pw")
        response = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "x" * 5000})
        assert response.status_code == 400
        assert "token" not in response.json()

    def test_longest_accepted_password_registers(self, client):
        register(client, "alice@example.com", "x" * 1024)
