"""
Tests for the error envelope produced by core.exceptions.custom_exception_handler.
"""

import pytest
from django.http import Http404
from rest_framework import exceptions, status

from core.exceptions import (
    ConflictError,
    NotAuthorizedError,
    custom_exception_handler,
    error_response,
)


class TestExceptionHandler:

    def test_domain_error_keeps_its_code(self):
        response = custom_exception_handler(
            ConflictError('Already there', 'DUPLICATE_RATING'), {'view': None}
        )

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data == {
            'success': False,
            'error': {'message': 'Already there', 'code': 'DUPLICATE_RATING'},
        }

    def test_domain_error_defaults(self):
        response = custom_exception_handler(NotAuthorizedError(), {'view': None})

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data['error']['code'] == 'NOT_AUTHORIZED'
        assert response.data['error']['message'] == 'You are not authorized to perform this action.'

    def test_details_are_included_when_given(self):
        response = error_response('Nope', 'BOOK_HAS_ACTIVE_TRADES', 409, details={'active_trades': [3]})

        assert response.data['error']['details'] == {'active_trades': [3]}

    def test_unexpected_error_becomes_internal_error(self):
        response = custom_exception_handler(RuntimeError('secret stack detail'), {'view': None})

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.data['error']['code'] == 'INTERNAL_ERROR'
        assert 'secret' not in response.data['error']['message']

    @pytest.mark.parametrize('exc,status_code,code', [
        (exceptions.NotAuthenticated(), 401, 'NO_TOKEN'),
        (exceptions.AuthenticationFailed(), 401, 'INVALID_TOKEN'),
        (exceptions.PermissionDenied(), 403, 'NOT_AUTHORIZED'),
        (exceptions.NotFound(), 404, 'NOT_FOUND'),
        (Http404(), 404, 'NOT_FOUND'),
        (exceptions.ParseError(), 400, 'INVALID_JSON'),
        (exceptions.MethodNotAllowed('DELETE'), 405, 'METHOD_NOT_ALLOWED'),
    ])
    def test_framework_errors_are_mapped(self, exc, status_code, code):
        response = custom_exception_handler(exc, {'view': None})

        assert response.status_code == status_code
        assert response.data['success'] is False
        assert response.data['error']['code'] == code

    def test_validation_error_carries_field_details(self):
        exc = exceptions.ValidationError({'title': ['This field is required.']})

        response = custom_exception_handler(exc, {'view': None})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['error']['code'] == 'VALIDATION_ERROR'
        assert response.data['error']['message'] == 'Validation failed.'
        assert response.data['error']['details'] == {'title': ['This field is required.']}


@pytest.mark.django_db
class TestErrorsOverHttp:

    def test_missing_token(self, api_client):
        response = api_client.get('/api/trades/')

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.data['error']['code'] == 'NO_TOKEN'
        assert 'WWW-Authenticate' in response

    def test_garbage_token(self, api_client):
        api_client.credentials(HTTP_AUTHORIZATION='Bearer not.a.token')

        response = api_client.get('/api/trades/')

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.data['error']['code'] == 'INVALID_TOKEN'

    def test_malformed_json(self, api_client, proposer):
        api_client.force_authenticate(user=proposer)

        response = api_client.post('/api/trades/', data='{"requested_book": ', content_type='application/json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['error']['code'] == 'INVALID_JSON'

    def test_method_not_allowed(self, api_client, proposer):
        api_client.force_authenticate(user=proposer)

        response = api_client.delete('/api/trades/')

        assert response.status_code == status.HTTP_405_METHOD_NOT_ALLOWED
        assert response.data['error']['code'] == 'METHOD_NOT_ALLOWED'
