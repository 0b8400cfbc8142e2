"""
Test suite for the book registry endpoints.

Tests cover:
- Public browsing with filters and pagination
- City filter honouring the owner's privacy setting
- Creating, updating and deleting books
- Deletion guard for books in active trades
"""

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework import status
from rest_framework.test import APIClient

from core.models import Book, Trade


User = get_user_model()


class BookTestBase(TestCase):

    def setUp(self):
        self.client = APIClient()

        self.owner = User.objects.create_user(
            username='owner', email='owner@test.com', password='testpass123',
            name='Olive', city='Porto', show_city=True
        )
        self.private = User.objects.create_user(
            username='private', email='private@test.com', password='testpass123',
            name='Priya', city='Porto', show_city=False
        )
        self.other = User.objects.create_user(
            username='other', email='other@test.com', password='testpass123', name='Omar'
        )

    def create_book(self, owner, title, **kwargs):
        kwargs.setdefault('author', 'Ursula K. Le Guin')
        kwargs.setdefault('genre', 'Science Fiction')
        kwargs.setdefault('condition', 'Good')
        return Book.objects.create(owner=owner, title=title, **kwargs)


class BookBrowsingTests(BookTestBase):

    def setUp(self):
        super().setUp()
        self.dispossessed = self.create_book(self.owner, 'The Dispossessed')
        self.earthsea = self.create_book(self.owner, 'A Wizard of Earthsea', genre='Fantasy')
        self.persuasion = self.create_book(self.private, 'Persuasion', author='Jane Austen', genre='Romance')
        self.hidden = self.create_book(self.other, 'The Lathe of Heaven', is_available=False)

    def titles(self, response):
        return {b['title'] for b in response.data['data']['books']}

    def test_browsing_is_public_and_lists_available_books(self):
        response = self.client.get('/api/books/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(
            self.titles(response),
            {'The Dispossessed', 'A Wizard of Earthsea', 'Persuasion'}
        )
        pagination = response.data['data']['pagination']
        self.assertEqual(pagination['total'], 3)
        self.assertEqual(pagination['page'], 1)
        self.assertEqual(pagination['pages'], 1)

    def test_title_filter_is_partial_and_case_insensitive(self):
        response = self.client.get('/api/books/', {'title': 'earthSEA'})

        self.assertEqual(self.titles(response), {'A Wizard of Earthsea'})

    def test_author_filter(self):
        response = self.client.get('/api/books/', {'author': 'austen'})

        self.assertEqual(self.titles(response), {'Persuasion'})

    def test_genre_filter_is_exact(self):
        response = self.client.get('/api/books/', {'genre': 'fantasy'})

        self.assertEqual(self.titles(response), {'A Wizard of Earthsea'})

    def test_city_filter_skips_owners_hiding_city(self):
        response = self.client.get('/api/books/', {'city': 'porto'})

        self.assertEqual(self.titles(response), {'The Dispossessed', 'A Wizard of Earthsea'})

    def test_owner_city_hidden_in_listing(self):
        response = self.client.get('/api/books/', {'title': 'Persuasion'})

        owner = response.data['data']['books'][0]['owner']
        self.assertNotIn('city', owner)
        self.assertNotIn('email', owner)

    def test_limit_param_paginates(self):
        response = self.client.get('/api/books/', {'limit': 2})

        self.assertEqual(len(response.data['data']['books']), 2)
        self.assertEqual(response.data['data']['pagination']['pages'], 2)

    def test_book_detail(self):
        response = self.client.get(f'/api/books/{self.dispossessed.id}/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['owner']['name'], 'Olive')

    def test_book_detail_errors(self):
        self.assertEqual(
            self.client.get('/api/books/nope/').data['error']['code'], 'INVALID_BOOK_ID'
        )
        self.assertEqual(
            self.client.get('/api/books/987654/').data['error']['code'], 'BOOK_NOT_FOUND'
        )

    def test_user_books(self):
        response = self.client.get(f'/api/books/user/{self.owner.id}/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)

    def test_user_books_excludes_unavailable(self):
        response = self.client.get(f'/api/books/user/{self.other.id}/')

        self.assertEqual(response.data['count'], 0)


class BookCreateUpdateTests(BookTestBase):

    def test_create_book(self):
        self.client.force_authenticate(user=self.owner)

        response = self.client.post('/api/books/', {
            'title': '  The Left Hand of Darkness ',
            'author': 'Ursula K. Le Guin',
            'genre': 'Science Fiction',
            'condition': 'Like New',
            'isbn': '978-0-441-47812-5',
            'publication_year': 1969,
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        data = response.data['data']
        self.assertEqual(data['title'], 'The Left Hand of Darkness')
        self.assertEqual(data['isbn'], '9780441478125')
        self.assertEqual(data['owner']['id'], self.owner.id)
        self.assertTrue(data['is_available'])

    def test_create_requires_authentication(self):
        response = self.client.post('/api/books/', {'title': 'X'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_create_validation_error(self):
        self.client.force_authenticate(user=self.owner)

        response = self.client.post('/api/books/', {
            'title': '   ',
            'author': 'Someone',
            'genre': 'Fiction',
            'condition': 'Mint',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['code'], 'VALIDATION_ERROR')
        self.assertIn('title', response.data['error']['details'])
        self.assertIn('condition', response.data['error']['details'])

    def test_owner_toggles_availability(self):
        book = self.create_book(self.owner, 'Lavinia')
        self.client.force_authenticate(user=self.owner)

        response = self.client.patch(f'/api/books/{book.id}/', {'is_available': False}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        book.refresh_from_db()
        self.assertFalse(book.is_available)
        self.assertEqual(book.title, 'Lavinia')

    def test_non_owner_cannot_update(self):
        book = self.create_book(self.owner, 'Lavinia')
        self.client.force_authenticate(user=self.other)

        response = self.client.put(f'/api/books/{book.id}/', {'title': 'Mine now'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['error']['code'], 'UNAUTHORIZED_UPDATE')
        book.refresh_from_db()
        self.assertEqual(book.title, 'Lavinia')


class BookDeleteTests(BookTestBase):

    def setUp(self):
        super().setUp()
        self.book = self.create_book(self.owner, 'Always Coming Home')
        self.offered = self.create_book(self.other, 'Solaris', author='Stanislaw Lem')

    def make_trade(self, status):
        return Trade.objects.create(
            proposer=self.other,
            receiver=self.owner,
            requested_book=self.book,
            offered_book=self.offered,
            status=status
        )

    def test_owner_deletes_book(self):
        self.client.force_authenticate(user=self.owner)

        response = self.client.delete(f'/api/books/{self.book.id}/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Book.objects.filter(pk=self.book.pk).exists())

    def test_non_owner_cannot_delete(self):
        self.client.force_authenticate(user=self.other)

        response = self.client.delete(f'/api/books/{self.book.id}/')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['error']['code'], 'UNAUTHORIZED_DELETE')

    def test_book_in_active_trade_cannot_be_deleted(self):
        for trade_status in ['proposed', 'accepted']:
            with self.subTest(status=trade_status):
                trade = self.make_trade(trade_status)
                self.client.force_authenticate(user=self.owner)

                response = self.client.delete(f'/api/books/{self.book.id}/')

                self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
                self.assertEqual(response.data['error']['code'], 'BOOK_HAS_ACTIVE_TRADES')
                self.assertEqual(response.data['error']['details'], {'active_trades': [trade.id]})
                self.assertTrue(Book.objects.filter(pk=self.book.pk).exists())
                trade.delete()

    def test_finished_trade_does_not_block_delete(self):
        trade = self.make_trade('completed')
        self.client.force_authenticate(user=self.owner)

        response = self.client.delete(f'/api/books/{self.book.id}/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        trade.refresh_from_db()
        self.assertIsNone(trade.requested_book)
