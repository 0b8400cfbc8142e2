import os
import sys
import django
import random
from datetime import timedelta
from django.utils import timezone
from faker import Faker

# Add project root to Python path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Set up Django environment
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'bookverse.settings')
django.setup()

from core.models import (
    User, Book, Trade, Rating, Message, WishlistItem
)

fake = Faker()

GENRES = [
    "Fiction", "Mystery", "Science Fiction", "Fantasy", "Biography",
    "History", "Poetry", "Romance", "Self-Help", "Children",
]

CONDITIONS = [choice[0] for choice in Book.CONDITION_CHOICES]

CITIES = ["Lisbon", "Porto", "Braga", "Coimbra", "Faro"]


def create_users(num_users=20):
    print(f"Creating {num_users} users...")
    users = []

    for _ in range(num_users):
        email = fake.unique.email()
        username = email.split('@')[0]
        user = User.objects.create_user(
            username=username,
            email=email,
            password='password123',
            name=fake.name(),
            city=random.choice(CITIES),
            show_city=random.random() < 0.8
        )
        users.append(user)

    print(f"Created {len(users)} users.")
    return users


def create_books(users, per_user=(2, 6)):
    print("Creating books...")
    books = []

    for user in users:
        for _ in range(random.randint(*per_user)):
            book = Book.objects.create(
                owner=user,
                title=fake.sentence(nb_words=random.randint(2, 5)).rstrip('.'),
                author=fake.name(),
                isbn=fake.isbn13() if random.random() < 0.7 else '',
                genre=random.choice(GENRES),
                condition=random.choice(CONDITIONS),
                description=fake.paragraph()[:1000],
                publication_year=random.randint(1950, timezone.now().year),
                publisher=fake.company(),
                is_available=random.random() < 0.9
            )
            books.append(book)

    print(f"Created {len(books)} books.")
    return books


def create_trades(books, num_trades=40):
    print("Creating trades...")
    trades = []
    available = [b for b in books if b.is_available]

    for _ in range(num_trades):
        requested, offered = random.sample(available, 2)
        if requested.owner_id == offered.owner_id:
            continue

        proposed_at = timezone.now() - timedelta(days=random.randint(1, 60))
        trade = Trade.objects.create(
            proposer=offered.owner,
            receiver=requested.owner,
            requested_book=requested,
            offered_book=offered,
            proposed_at=proposed_at
        )

        # Walk the trade along the status graph
        status = random.choice(['proposed', 'accepted', 'declined', 'completed', 'completed'])
        if status != 'proposed':
            trade.apply_transition('declined' if status == 'declined' else 'accepted')
        if status == 'completed':
            trade.apply_transition('completed')

        trades.append(trade)

    print(f"Created {len(trades)} trades.")
    return trades


def create_messages(trades):
    print("Creating messages...")
    count = 0

    for trade in trades:
        if trade.status not in ('accepted', 'completed'):
            continue
        for _ in range(random.randint(1, 5)):
            Message.objects.create(
                trade=trade,
                sender_id=random.choice([trade.proposer_id, trade.receiver_id]),
                content=fake.sentence()
            )
            count += 1

    print(f"Created {count} messages.")


def create_ratings(trades):
    print("Creating ratings...")
    ratings = []

    completed_trades = [t for t in trades if t.status == 'completed']

    for trade in completed_trades:
        for rater_id in (trade.proposer_id, trade.receiver_id):
            # 70% chance of leaving a rating
            if random.random() < 0.7:
                stars = random.randint(1, 5)
                rating = Rating.objects.create(
                    trade=trade,
                    rater_id=rater_id,
                    rated_user_id=trade.other_party_id(rater_id),
                    stars=stars,
                    comment=fake.sentence() if stars <= 3 or random.random() < 0.5 else ''
                )
                ratings.append(rating)

    print(f"Created {len(ratings)} ratings.")
    return ratings


def create_wishlists(users, books):
    print("Creating wishlist items...")
    count = 0

    for user in users:
        for _ in range(random.randint(0, 3)):
            # Half of the wishes point at a real listing so matching has work to do
            if books and random.random() < 0.5:
                book = random.choice(books)
                title, author, isbn = book.title, book.author, book.isbn
            else:
                title, author, isbn = fake.sentence(nb_words=3).rstrip('.'), fake.name(), ''
            if isbn and WishlistItem.objects.filter(user=user, isbn=isbn).exists():
                continue
            WishlistItem.objects.create(
                user=user,
                title=title,
                author=author,
                isbn=isbn,
                notes=fake.sentence()
            )
            count += 1

    print(f"Created {count} wishlist items.")


def main():
    print("Starting database population...")

    users = create_users(num_users=20)

    books = create_books(users)

    trades = create_trades(books)

    create_messages(trades)

    # Ratings recompute user aggregates through the post_save signal
    create_ratings(trades)

    create_wishlists(users, books)

    print("Database population completed successfully!")


if __name__ == '__main__':
    main()
