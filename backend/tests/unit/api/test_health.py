"""
Tests for health check endpoints and response headers
"""
from httpx import AsyncClient


class TestHealthProbes:

    async def test_liveness(self, client: AsyncClient):
        response = await client.get('/api/v1/health/live')

        assert response.status_code == 200
        assert response.json()['status'] == 'alive'

    async def test_readiness_with_tables_present(self, client: AsyncClient):
        response = await client.get('/api/v1/health/ready')

        assert response.status_code == 200
        body = response.json()
        assert body['status'] == 'ready'
        assert body['checks']['database']['tables_ready'] is True

    async def test_deep_check_reports_missing_smtp(self, client: AsyncClient):
        response = await client.get('/api/v1/health/deep')

        assert response.status_code == 200
        body = response.json()
        assert body['checks']['email']['status'] == 'degraded'
        assert body['status'] == 'degraded'


class TestResponseHeaders:

    async def test_request_id_is_echoed(self, client: AsyncClient):
        response = await client.get('/health', headers={'X-Request-ID': 'req-42'})

        assert response.headers['X-Request-ID'] == 'req-42'
        assert response.headers['X-Content-Type-Options'] == 'nosniff'

    async def test_admin_pages_are_not_cached(self, client: AsyncClient):
        response = await client.get('/admin/login')

        assert response.headers['Cache-Control'] == 'no-store'

    async def test_oversized_body_is_rejected(self, client: AsyncClient):
        response = await client.post(
            '/api/v1/auth/login',
            content=b'x' * (1024 * 1024 + 1),
            headers={'Content-Type': 'application/json'},
        )

        assert response.status_code == 413
        assert response.json()['error']['code'] == 'PAYLOAD_TOO_LARGE'
