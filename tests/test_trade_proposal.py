"""
Test suite for the trade proposal endpoint.

Covers the happy path, every refusal code in the order they are checked,
and the rule that proposing a trade leaves book availability untouched.
"""

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework import status
from rest_framework.test import APIClient

from core.models import Book, Notification, Trade


User = get_user_model()


def make_book(owner, title='Dune', **kwargs):
    defaults = {
        'author': 'Frank Herbert',
        'genre': 'Science Fiction',
        'condition': 'Good',
    }
    defaults.update(kwargs)
    return Book.objects.create(owner=owner, title=title, **defaults)


class TradeProposalSuccessTests(TestCase):
    """Test successful trade proposals."""

    def setUp(self):
        self.client = APIClient()

        self.alice = User.objects.create_user(
            username='alice', email='alice@test.com', password='testpass123', name='Alice'
        )
        self.bob = User.objects.create_user(
            username='bob', email='bob@test.com', password='testpass123', name='Bob'
        )

        self.bobs_book = make_book(self.bob, title='Dune')
        self.alices_book = make_book(self.alice, title='Emma', author='Jane Austen', genre='Fiction')

    def propose(self, requested, offered):
        return self.client.post(
            '/api/trades/',
            {'requestedBook': requested, 'offeredBook': offered},
            format='json'
        )

    def test_proposer_creates_trade_in_proposed_status(self):
        """A valid proposal creates a trade addressed to the requested book's owner."""
        self.client.force_authenticate(user=self.alice)

        response = self.propose(self.bobs_book.id, self.alices_book.id)

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['success'])
        data = response.data['data']
        self.assertEqual(data['status'], 'proposed')
        self.assertEqual(data['proposer']['id'], self.alice.id)
        self.assertEqual(data['receiver']['id'], self.bob.id)
        self.assertEqual(data['requested_book']['id'], self.bobs_book.id)
        self.assertEqual(data['offered_book']['id'], self.alices_book.id)
        self.assertIsNotNone(data['proposed_at'])
        self.assertIsNone(data['responded_at'])
        self.assertIsNone(data['completed_at'])

        trade = Trade.objects.get()
        self.assertEqual(trade.receiver, self.bob)

    def test_snake_case_body_is_accepted(self):
        self.client.force_authenticate(user=self.alice)

        response = self.client.post(
            '/api/trades/',
            {'requested_book': self.bobs_book.id, 'offered_book': self.alices_book.id},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['requested_book']['id'], self.bobs_book.id)
        self.assertEqual(Trade.objects.get().offered_book, self.alices_book)

    def test_string_ids_are_accepted(self):
        self.client.force_authenticate(user=self.alice)

        response = self.propose(str(self.bobs_book.id), str(self.alices_book.id))

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_receiver_in_body_is_ignored(self):
        """The receiver is always derived from the requested book."""
        carol = User.objects.create_user(username='carol', email='carol@test.com', password='testpass123')
        self.client.force_authenticate(user=self.alice)

        response = self.client.post(
            '/api/trades/',
            {
                'requestedBook': self.bobs_book.id,
                'offeredBook': self.alices_book.id,
                'receiver': carol.id,
            },
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['receiver']['id'], self.bob.id)

    def test_book_availability_is_not_changed(self):
        self.client.force_authenticate(user=self.alice)

        self.propose(self.bobs_book.id, self.alices_book.id)

        self.bobs_book.refresh_from_db()
        self.alices_book.refresh_from_db()
        self.assertTrue(self.bobs_book.is_available)
        self.assertTrue(self.alices_book.is_available)

    def test_receiver_gets_trade_request_notification(self):
        self.client.force_authenticate(user=self.alice)

        response = self.propose(self.bobs_book.id, self.alices_book.id)

        notification = Notification.objects.get(recipient=self.bob)
        self.assertEqual(notification.type, 'trade_request')
        self.assertEqual(notification.related_trade_id, response.data['data']['id'])
        self.assertEqual(notification.related_user, self.alice)
        self.assertEqual(notification.message, 'Alice proposed a trade for your book "Dune"')

    def test_same_books_can_be_in_several_trades(self):
        """Availability is advisory, so a book may appear in several open trades."""
        carol = User.objects.create_user(username='carol', email='carol@test.com', password='testpass123')
        carols_book = make_book(carol, title='Ulysses')

        self.client.force_authenticate(user=self.alice)
        first = self.propose(self.bobs_book.id, self.alices_book.id)
        second = self.propose(carols_book.id, self.alices_book.id)

        self.assertEqual(first.status_code, status.HTTP_201_CREATED)
        self.assertEqual(second.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Trade.objects.count(), 2)


class TradeProposalValidationTests(TestCase):
    """Test refusal codes of the trade proposal endpoint."""

    def setUp(self):
        self.client = APIClient()

        self.alice = User.objects.create_user(username='alice', email='alice@test.com', password='testpass123')
        self.bob = User.objects.create_user(username='bob', email='bob@test.com', password='testpass123')

        self.bobs_book = make_book(self.bob, title='Dune')
        self.alices_book = make_book(self.alice, title='Emma')
        self.client.force_authenticate(user=self.alice)

    def assertError(self, response, status_code, code):
        self.assertEqual(response.status_code, status_code)
        self.assertFalse(response.data['success'])
        self.assertEqual(response.data['error']['code'], code)
        self.assertTrue(response.data['error']['message'])
        self.assertEqual(Trade.objects.count(), 0)

    def test_missing_requested_book(self):
        response = self.client.post('/api/trades/', {'offeredBook': self.alices_book.id}, format='json')
        self.assertError(response, status.HTTP_400_BAD_REQUEST, 'MISSING_REQUIRED_FIELDS')

    def test_missing_offered_book(self):
        response = self.client.post('/api/trades/', {'requestedBook': self.bobs_book.id}, format='json')
        self.assertError(response, status.HTTP_400_BAD_REQUEST, 'MISSING_REQUIRED_FIELDS')

    def test_missing_offered_book_in_snake_case_body(self):
        response = self.client.post('/api/trades/', {'requested_book': self.bobs_book.id}, format='json')
        self.assertError(response, status.HTTP_400_BAD_REQUEST, 'MISSING_REQUIRED_FIELDS')

    def test_body_that_is_not_an_object(self):
        response = self.client.post('/api/trades/', [self.bobs_book.id, self.alices_book.id], format='json')
        self.assertError(response, status.HTTP_400_BAD_REQUEST, 'MISSING_REQUIRED_FIELDS')

    def test_malformed_requested_book_id(self):
        response = self.client.post(
            '/api/trades/',
            {'requestedBook': 'not-an-id', 'offeredBook': self.alices_book.id},
            format='json'
        )
        self.assertError(response, status.HTTP_400_BAD_REQUEST, 'INVALID_BOOK_ID')

    def test_malformed_offered_book_id(self):
        response = self.client.post(
            '/api/trades/',
            {'requestedBook': self.bobs_book.id, 'offeredBook': -4},
            format='json'
        )
        self.assertError(response, status.HTTP_400_BAD_REQUEST, 'INVALID_BOOK_ID')

    def test_requested_book_not_found(self):
        response = self.client.post(
            '/api/trades/',
            {'requestedBook': 99999, 'offeredBook': 99998},
            format='json'
        )
        self.assertError(response, status.HTTP_404_NOT_FOUND, 'REQUESTED_BOOK_NOT_FOUND')

    def test_offered_book_not_found(self):
        response = self.client.post(
            '/api/trades/',
            {'requestedBook': self.bobs_book.id, 'offeredBook': 99999},
            format='json'
        )
        self.assertError(response, status.HTTP_404_NOT_FOUND, 'OFFERED_BOOK_NOT_FOUND')

    def test_offering_someone_elses_book(self):
        """Offering a book the proposer does not own is refused with 403."""
        carol = User.objects.create_user(username='carol', email='carol@test.com', password='testpass123')
        carols_book = make_book(carol, title='Ulysses')

        response = self.client.post(
            '/api/trades/',
            {'requestedBook': self.bobs_book.id, 'offeredBook': carols_book.id},
            format='json'
        )
        self.assertError(response, status.HTTP_403_FORBIDDEN, 'NOT_BOOK_OWNER')

    def test_requesting_own_book(self):
        second_book = make_book(self.alice, title='Persuasion')

        response = self.client.post(
            '/api/trades/',
            {'requestedBook': second_book.id, 'offeredBook': self.alices_book.id},
            format='json'
        )
        self.assertError(response, status.HTTP_400_BAD_REQUEST, 'CANNOT_REQUEST_OWN_BOOK')

    def test_requested_book_unavailable(self):
        self.bobs_book.is_available = False
        self.bobs_book.save()

        response = self.client.post(
            '/api/trades/',
            {'requestedBook': self.bobs_book.id, 'offeredBook': self.alices_book.id},
            format='json'
        )
        self.assertError(response, status.HTTP_400_BAD_REQUEST, 'REQUESTED_BOOK_UNAVAILABLE')

    def test_offered_book_unavailable(self):
        self.alices_book.is_available = False
        self.alices_book.save()

        response = self.client.post(
            '/api/trades/',
            {'requestedBook': self.bobs_book.id, 'offeredBook': self.alices_book.id},
            format='json'
        )
        self.assertError(response, status.HTTP_400_BAD_REQUEST, 'OFFERED_BOOK_UNAVAILABLE')

    def test_ownership_is_checked_before_availability(self):
        """NOT_BOOK_OWNER wins over an unavailable requested book."""
        carol = User.objects.create_user(username='carol', email='carol@test.com', password='testpass123')
        carols_book = make_book(carol, title='Ulysses')
        self.bobs_book.is_available = False
        self.bobs_book.save()

        response = self.client.post(
            '/api/trades/',
            {'requestedBook': self.bobs_book.id, 'offeredBook': carols_book.id},
            format='json'
        )
        self.assertError(response, status.HTTP_403_FORBIDDEN, 'NOT_BOOK_OWNER')

    def test_unauthenticated_request(self):
        self.client.force_authenticate(user=None)

        response = self.client.post(
            '/api/trades/',
            {'requestedBook': self.bobs_book.id, 'offeredBook': self.alices_book.id},
            format='json'
        )
        self.assertError(response, status.HTTP_401_UNAUTHORIZED, 'NO_TOKEN')
