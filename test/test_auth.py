"""
Test cases for authentication functionality.
"""
from conftest import PASSWORD, login


class TestUserRegistration:
    """Test cases for user registration endpoints."""

    def test_register_student(self, client):
        response = client.post('/api/auth/register', json={
            'email': 'New@Test.com',
            'password': 'password123',
            'first_name': 'New',
            'last_name': 'Student',
            'student_number': 'S-100',
        })
        assert response.status_code == 201
        user = response.get_json()['user']
        assert user['email'] == 'new@test.com'
        assert user['role'] == 'student'

    def test_register_missing_fields(self, client):
        """Test registration with missing required fields."""
        response = client.post('/api/auth/register', json={
            'email': 'test@test.com'
            # Missing password, first_name
        })
        assert response.status_code == 400

    def test_register_invalid_email(self, client):
        response = client.post('/api/auth/register', json={
            'email': 'invalid-email',
            'password': 'password123',
            'first_name': 'Test',
        })
        assert response.status_code == 400

    def test_register_invalid_password(self, client):
        response = client.post('/api/auth/register', json={
            'email': 'test@test.com',
            'password': '123',  # Too short
            'first_name': 'Test',
        })
        assert response.status_code == 400

    def test_register_admin_not_allowed(self, client):
        response = client.post('/api/auth/register', json={
            'email': 'root@test.com',
            'password': 'password123',
            'first_name': 'Root',
            'role': 'admin',
        })
        assert response.status_code == 400

    def test_register_duplicate_email(self, client, make_user):
        make_user('taken@test.com')
        response = client.post('/api/auth/register', json={
            'email': 'taken@test.com',
            'password': 'password123',
            'first_name': 'Again',
        })
        assert response.status_code == 409


class TestUserLogin:
    """Test cases for user login endpoints."""

    def test_login_and_me(self, client, make_user):
        make_user('prof@test.com', role='professor')
        login(client, 'prof@test.com')

        response = client.get('/api/auth/me')
        assert response.status_code == 200
        assert response.get_json()['user']['role'] == 'professor'

    def test_login_wrong_password(self, client, make_user):
        make_user('user@test.com')
        response = client.post('/api/auth/login', json={'email': 'user@test.com', 'password': PASSWORD + 'x'})
        assert response.status_code == 401

    def test_login_missing_fields(self, client):
        response = client.post('/api/auth/login', json={
            'email': 'test@test.com'
            # Missing password
        })
        assert response.status_code == 400

    def test_login_invalid_email_format(self, client):
        response = client.post('/api/auth/login', json={
            'email': 'invalid-email',
            'password': 'password123'
        })
        assert response.status_code == 400

    def test_logout(self, client, make_user):
        make_user('user@test.com')
        login(client, 'user@test.com')

        assert client.post('/api/auth/logout').status_code == 200
        assert client.get('/api/auth/me').status_code == 401


class TestAppEndpoints:

    def test_health_reports_live_relay(self, client):
        response = client.get('/health')
        assert response.status_code == 200
        assert response.get_json()['liveRelay'] is True

    def test_health_counts_rooms_and_sessions(self, client, socket_client):
        first = socket_client()
        second = socket_client()
        first.emit('join_quiz_room', 7)
        first.emit('join_professor_room', 2)
        second.emit('join_quiz_room', 7)

        body = client.get('/health').get_json()
        assert body['rooms'] == 2
        assert body['sessions'] == 2

    def test_unknown_api_route_returns_json(self, client):
        response = client.get('/api/does-not-exist')
        assert response.status_code == 404
        assert response.get_json()['success'] is False
