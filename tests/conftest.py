"""
Shared pytest fixtures for the BookVerse API tests.
"""

import itertools

import pytest
from rest_framework.test import APIClient

from core.models import Book, Trade, User


_sequence = itertools.count(1)


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def make_user(db):
    """Factory creating active users with unique usernames and emails."""
    def _make_user(name='', **kwargs):
        n = next(_sequence)
        username = kwargs.pop('username', f'reader{n}')
        return User.objects.create_user(
            username=username,
            email=kwargs.pop('email', f'{username}@test.com'),
            password=kwargs.pop('password', 'testpass123'),
            name=name,
            **kwargs
        )
    return _make_user


@pytest.fixture
def make_book(db):
    def _make_book(owner, title='The Hobbit', author='J.R.R. Tolkien', **kwargs):
        kwargs.setdefault('genre', 'Fantasy')
        kwargs.setdefault('condition', 'Good')
        return Book.objects.create(owner=owner, title=title, author=author, **kwargs)
    return _make_book


@pytest.fixture
def make_trade(make_book):
    """
    Factory creating a trade between two users in the given status.

    The receiver owns the requested book and the proposer the offered one.
    """
    def _make_trade(proposer, receiver, status='proposed'):
        return Trade.objects.create(
            proposer=proposer,
            receiver=receiver,
            requested_book=make_book(receiver, title='Requested Book'),
            offered_book=make_book(proposer, title='Offered Book'),
            status=status
        )
    return _make_trade


@pytest.fixture
def proposer(make_user):
    return make_user(name='Pat Proposer')


@pytest.fixture
def receiver(make_user):
    return make_user(name='Rae Receiver')


@pytest.fixture
def outsider(make_user):
    return make_user(name='Otto Outsider')
