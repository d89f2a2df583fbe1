"""Tests for Distress Service HTTP handler.

Tests the /analyze and /analyze/batch endpoints plus cache and
crisis resource routes.
"""
import json
import pytest

from schoolpulse.shared.utils import configure_pii_salt


@pytest.fixture(autouse=True)
def setup_pii_salt():
    """Configure PII salt before each test."""
    configure_pii_salt("test_salt_that_is_at_least_32_characters_long")


@pytest.fixture
def client():
    """Create Flask test client with an empty cache."""
    from schoolpulse.services.distress_service.handler import analyzer, app
    app.config['TESTING'] = True
    analyzer.cache.clear()
    with app.test_client() as client:
        yield client


class TestHealthEndpoint:
    """Tests for /health endpoint."""

    def test_health_returns_200(self, client):
        """Health check should return 200."""
        response = client.get('/health')
        assert response.status_code == 200
        data = json.loads(response.data)
        assert data['status'] == 'healthy'
        assert data['service'] == 'distress-service'

    def test_health_includes_lexicon_version(self, client):
        response = client.get('/health')
        data = json.loads(response.data)
        assert 'lexicon_version' in data


class TestReadyEndpoint:

    def test_ready_returns_200(self, client):
        response = client.get('/ready')
        assert response.status_code == 200
        assert json.loads(response.data)['status'] == 'ready'


class TestAnalyzeEndpoint:
    """Tests for /analyze endpoint."""

    def test_critical_text(self, client):
        """Explicit self-harm statement should come back critical."""
        response = client.post(
            '/analyze',
            json={'text': 'I want to kill myself and end everything'}
        )
        assert response.status_code == 200
        data = json.loads(response.data)
        assert data['analyzed'] is True
        assert data['analysis']['risk_level'] == 'critical'
        assert data['analysis']['detected_language'] == 'en'
        assert data['analysis']['indicators'] == ['kill myself']

    def test_positive_text(self, client):
        response = client.post('/analyze', json={'text': 'Today was a great day!'})
        data = json.loads(response.data)
        assert data['analysis']['risk_level'] == 'low'
        assert data['analysis']['confidence'] == 0.0

    def test_short_text_not_analyzed(self, client):
        """Text below minimum length returns analyzed=false."""
        response = client.post('/analyze', json={'text': 'ok'})
        assert response.status_code == 200
        data = json.loads(response.data)
        assert data['analyzed'] is False
        assert data['analysis'] is None

    def test_missing_body_returns_400(self, client):
        response = client.post('/analyze', data='', content_type='application/json')
        assert response.status_code == 400

    def test_non_string_text_returns_400(self, client):
        response = client.post('/analyze', json={'text': 42})
        assert response.status_code == 400

    def test_repeat_request_served_from_cache(self, client):
        client.post('/analyze', json={'text': 'I feel hopeless and worthless lately'})
        client.post('/analyze', json={'text': 'i feel hopeless and worthless lately  '})

        stats = json.loads(client.get('/cache/stats').data)
        assert stats['total'] == 1
        assert stats['hit_rate'] == 0.5


class TestBatchEndpoint:
    """Tests for /analyze/batch endpoint."""

    def test_batch_drops_short_texts(self, client):
        response = client.post('/analyze/batch', json={'texts': [
            'I feel hopeless and worthless lately',
            'ok',
            'Today was a great day!',
        ]})
        assert response.status_code == 200
        data = json.loads(response.data)
        assert data['submitted'] == 3
        assert data['analyzed'] == 2
        assert [r['risk_level'] for r in data['results']] == ['medium', 'low']

    def test_batch_requires_string_list(self, client):
        response = client.post('/analyze/batch', json={'texts': ['fine text here', 7]})
        assert response.status_code == 400

    def test_batch_missing_texts(self, client):
        response = client.post('/analyze/batch', json={'items': []})
        assert response.status_code == 400

    def test_batch_too_large(self, client):
        from schoolpulse.services.distress_service.handler import MAX_BATCH_SIZE
        response = client.post(
            '/analyze/batch',
            json={'texts': ['some feedback text'] * (MAX_BATCH_SIZE + 1)}
        )
        assert response.status_code == 413


class TestCacheEndpoints:

    def test_clear(self, client):
        client.post('/analyze', json={'text': 'I feel hopeless and worthless lately'})

        response = client.post('/cache/clear')
        assert response.status_code == 200
        assert json.loads(response.data) == {'status': 'cleared'}

        stats = json.loads(client.get('/cache/stats').data)
        assert stats['total'] == 0


class TestResourcesEndpoint:

    def test_lithuanian_resources(self, client):
        response = client.get('/resources/lt')
        assert response.status_code == 200
        data = json.loads(response.data)
        assert data['language'] == 'lt'
        assert data['resources']['hotlines'][0]['name'] == 'Jaunimo linija'

    def test_unsupported_language_returns_404(self, client):
        response = client.get('/resources/xx')
        assert response.status_code == 404
