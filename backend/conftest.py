"""
Root conftest.py for all backend tests.

This file makes fixtures available to all test files across all apps.
"""
import pytest
from django.conf import settings
from django.core.cache import cache

# Rate limits are exercised explicitly where needed
settings.RATELIMIT_ENABLE = False

# Webhook secret shared by the dispatch webhook tests
settings.SHIPDAY_WEBHOOK_SECRET = "test-shipday-secret"

# Never talk to real providers from tests
settings.STRIPE_SECRET_KEY = ""
settings.STRIPE_TAX_ENABLED = False
settings.SHIPDAY_API_KEY = ""

# Background tasks run inline so their effects are visible to assertions
settings.CELERY_TASK_ALWAYS_EAGER = True


# ============================================================================
# AUTO-USE FIXTURES (Run automatically for every test)
# ============================================================================

@pytest.fixture(autouse=True)
def clear_cache_after_test():
    """
    Clear cache after each test to prevent cache pollution.

    Rate limit counters live in the cache too.
    """
    yield
    cache.clear()


# ============================================================================
# API CLIENT FIXTURES
# ============================================================================

@pytest.fixture
def api_client():
    """
    Provide DRF API client for API tests.

    Usage:
        def test_my_api(api_client):
            response = api_client.post('/api/orders/quote/', {...}, format='json')
            assert response.status_code == 200
    """
    from rest_framework.test import APIClient
    return APIClient()


@pytest.fixture
def authenticated_client():
    """
    Factory for API clients authenticated as a given user.

    Usage:
        def test_protected_endpoint(authenticated_client, customer_user):
            client = authenticated_client(customer_user)
            response = client.get('/api/orders/')
            assert response.status_code == 200
    """
    from rest_framework.test import APIClient
    from rest_framework_simplejwt.tokens import RefreshToken

    def _make(user):
        client = APIClient()
        refresh = RefreshToken.for_user(user)
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")
        return client

    return _make


# ============================================================================
# IMPORT ALL FIXTURES FROM core_backend/tests/fixtures.py
# ============================================================================
from core_backend.tests.fixtures import *
