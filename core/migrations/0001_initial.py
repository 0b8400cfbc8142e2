import core.validators
import django.contrib.auth.models
import django.contrib.auth.validators
import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('auth', '0012_alter_user_first_name_max_length'),
    ]

    operations = [
        migrations.CreateModel(
            name='User',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('password', models.CharField(max_length=128, verbose_name='password')),
                ('last_login', models.DateTimeField(blank=True, null=True, verbose_name='last login')),
                ('is_superuser', models.BooleanField(default=False, help_text='Designates that this user has all permissions without explicitly assigning them.', verbose_name='superuser status')),
                ('username', models.CharField(error_messages={'unique': 'A user with that username already exists.'}, help_text='Required. 150 characters or fewer. Letters, digits and @/./+/-/_ only.', max_length=150, unique=True, validators=[django.contrib.auth.validators.UnicodeUsernameValidator()], verbose_name='username')),
                ('first_name', models.CharField(blank=True, max_length=150, verbose_name='first name')),
                ('last_name', models.CharField(blank=True, max_length=150, verbose_name='last name')),
                ('is_staff', models.BooleanField(default=False, help_text='Designates whether the user can log into this admin site.', verbose_name='staff status')),
                ('is_active', models.BooleanField(default=True, help_text='Designates whether this user should be treated as active. Unselect this instead of deleting accounts.', verbose_name='active')),
                ('date_joined', models.DateTimeField(default=django.utils.timezone.now, verbose_name='date joined')),
                ('email', models.EmailField(error_messages={'unique': 'A user with that email already exists.'}, help_text='Required. Enter a valid email address.', max_length=254, unique=True, verbose_name='email address')),
                ('name', models.CharField(blank=True, default='', help_text='Display name shown to other users.', max_length=100, verbose_name='name')),
                ('city', models.CharField(blank=True, default='', help_text='City used for local book browsing.', max_length=100, verbose_name='city')),
                ('show_city', models.BooleanField(default=True, help_text='Whether the city is visible to other users.', verbose_name='show city')),
                ('average_rating', models.FloatField(default=0.0, help_text='Mean of all stars received from trade partners.', validators=[django.core.validators.MinValueValidator(0.0, message='Rating cannot be negative.'), django.core.validators.MaxValueValidator(5.0, message='Rating cannot exceed 5.')], verbose_name='average rating')),
                ('rating_count', models.PositiveIntegerField(default=0, help_text='Number of ratings received from trade partners.', verbose_name='rating count')),
                ('created_at', models.DateTimeField(auto_now_add=True, help_text='Timestamp when the account was created.', verbose_name='created at')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Timestamp when the account was last updated.', verbose_name='updated at')),
                ('groups', models.ManyToManyField(blank=True, help_text='The groups this user belongs to. A user will get all permissions granted to each of their groups.', related_name='user_set', related_query_name='user', to='auth.group', verbose_name='groups')),
                ('user_permissions', models.ManyToManyField(blank=True, help_text='Specific permissions for this user.', related_name='user_set', related_query_name='user', to='auth.permission', verbose_name='user permissions')),
            ],
            options={
                'verbose_name': 'user',
                'verbose_name_plural': 'users',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['city'], name='core_user_city_idx')],
            },
            managers=[
                ('objects', django.contrib.auth.models.UserManager()),
            ],
        ),
        migrations.CreateModel(
            name='Book',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(help_text='Book title', max_length=200, verbose_name='title')),
                ('author', models.CharField(help_text='Book author', max_length=200, verbose_name='author')),
                ('isbn', models.CharField(blank=True, default='', help_text='Optional ISBN-10 or ISBN-13, stored without hyphens', max_length=20, validators=[core.validators.validate_isbn], verbose_name='ISBN')),
                ('genre', models.CharField(help_text='Book genre', max_length=100, verbose_name='genre')),
                ('condition', models.CharField(choices=[('New', 'New'), ('Like New', 'Like New'), ('Good', 'Good'), ('Fair', 'Fair'), ('Poor', 'Poor')], help_text='Physical condition of the book', max_length=10, verbose_name='condition')),
                ('description', models.TextField(blank=True, default='', help_text='Optional description, up to 1000 characters', max_length=1000, verbose_name='description')),
                ('image_url', models.URLField(blank=True, default='', help_text='Location of the cover image in external storage', max_length=500, verbose_name='image URL')),
                ('publication_year', models.PositiveSmallIntegerField(blank=True, help_text='Year the edition was published', null=True, validators=[core.validators.validate_publication_year], verbose_name='publication year')),
                ('publisher', models.CharField(blank=True, default='', help_text='Publisher name', max_length=200, verbose_name='publisher')),
                ('is_available', models.BooleanField(default=True, help_text='Whether the owner is offering this book for trade', verbose_name='available')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='updated at')),
                ('owner', models.ForeignKey(help_text='User who owns the book', on_delete=django.db.models.deletion.CASCADE, related_name='books', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'book',
                'verbose_name_plural': 'books',
                'ordering': ['-created_at', '-id'],
                'indexes': [
                    models.Index(fields=['owner'], name='core_book_owner_idx'),
                    models.Index(fields=['is_available'], name='core_book_available_idx'),
                    models.Index(fields=['genre'], name='core_book_genre_idx'),
                    models.Index(fields=['isbn'], name='core_book_isbn_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Trade',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('status', models.CharField(choices=[('proposed', 'Proposed'), ('accepted', 'Accepted'), ('declined', 'Declined'), ('completed', 'Completed')], default='proposed', help_text='Current trade status', max_length=10, verbose_name='status')),
                ('proposed_at', models.DateTimeField(default=django.utils.timezone.now, help_text='When the trade was proposed', verbose_name='proposed at')),
                ('responded_at', models.DateTimeField(blank=True, help_text='When the receiver accepted or declined', null=True, verbose_name='responded at')),
                ('completed_at', models.DateTimeField(blank=True, help_text='When the trade was marked completed', null=True, verbose_name='completed at')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='updated at')),
                ('offered_book', models.ForeignKey(blank=True, help_text='Book the proposer gives in return', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='trades_offered', to='core.book')),
                ('proposer', models.ForeignKey(help_text='User proposing the trade', on_delete=django.db.models.deletion.CASCADE, related_name='trades_proposed', to=settings.AUTH_USER_MODEL)),
                ('receiver', models.ForeignKey(help_text='Owner of the requested book', on_delete=django.db.models.deletion.CASCADE, related_name='trades_received', to=settings.AUTH_USER_MODEL)),
                ('requested_book', models.ForeignKey(blank=True, help_text='Book the proposer wants', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='trades_requested', to='core.book')),
            ],
            options={
                'verbose_name': 'trade',
                'verbose_name_plural': 'trades',
                'ordering': ['-created_at', '-id'],
                'indexes': [
                    models.Index(fields=['proposer', 'status'], name='core_trade_proposer_idx'),
                    models.Index(fields=['receiver', 'status'], name='core_trade_receiver_idx'),
                    models.Index(fields=['status'], name='core_trade_status_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Rating',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('stars', models.PositiveSmallIntegerField(help_text='Rating from 1 to 5 stars', validators=[django.core.validators.MinValueValidator(1, message='Rating must be at least 1.'), django.core.validators.MaxValueValidator(5, message='Rating must be at most 5.')], verbose_name='stars')),
                ('comment', models.TextField(blank=True, default='', help_text='Feedback about the trade, required for 3 stars or fewer', max_length=1000, verbose_name='comment')),
                ('created_at', models.DateTimeField(auto_now_add=True, help_text='Timestamp when the rating was created', verbose_name='created at')),
                ('rated_user', models.ForeignKey(help_text='User receiving the rating', on_delete=django.db.models.deletion.CASCADE, related_name='ratings_received', to=settings.AUTH_USER_MODEL)),
                ('rater', models.ForeignKey(help_text='User leaving the rating', on_delete=django.db.models.deletion.CASCADE, related_name='ratings_given', to=settings.AUTH_USER_MODEL)),
                ('trade', models.ForeignKey(help_text='Trade being rated', on_delete=django.db.models.deletion.CASCADE, related_name='ratings', to='core.trade')),
            ],
            options={
                'verbose_name': 'rating',
                'verbose_name_plural': 'ratings',
                'ordering': ['-created_at', '-id'],
                'indexes': [models.Index(fields=['rated_user'], name='core_rating_rated_user_idx')],
                'constraints': [models.UniqueConstraint(fields=('trade', 'rater'), name='unique_rating_per_trade_rater')],
            },
        ),
        migrations.CreateModel(
            name='Message',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('content', models.TextField(help_text='Message text, up to 1000 characters', max_length=1000, verbose_name='content')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now, help_text='Server time the message was stored', verbose_name='created at')),
                ('sender', models.ForeignKey(help_text='User who sent the message', on_delete=django.db.models.deletion.CASCADE, related_name='messages_sent', to=settings.AUTH_USER_MODEL)),
                ('trade', models.ForeignKey(help_text='Trade the conversation belongs to', on_delete=django.db.models.deletion.CASCADE, related_name='messages', to='core.trade')),
            ],
            options={
                'verbose_name': 'message',
                'verbose_name_plural': 'messages',
                'ordering': ['created_at', 'id'],
                'indexes': [models.Index(fields=['trade', 'created_at'], name='core_message_trade_idx')],
            },
        ),
        migrations.CreateModel(
            name='Notification',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('type', models.CharField(choices=[('trade_request', 'Trade request'), ('trade_accepted', 'Trade accepted'), ('trade_declined', 'Trade declined'), ('trade_completed', 'Trade completed'), ('new_message', 'New message')], help_text='Kind of event', max_length=20, verbose_name='type')),
                ('message', models.CharField(help_text='Human readable summary', max_length=500, verbose_name='message')),
                ('is_read', models.BooleanField(default=False, verbose_name='read')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now, verbose_name='created at')),
                ('recipient', models.ForeignKey(help_text='User the notification is for', on_delete=django.db.models.deletion.CASCADE, related_name='notifications', to=settings.AUTH_USER_MODEL)),
                ('related_trade', models.ForeignKey(blank=True, help_text='Trade the event concerns', null=True, on_delete=django.db.models.deletion.CASCADE, related_name='notifications', to='core.trade')),
                ('related_user', models.ForeignKey(blank=True, help_text='User who caused the event', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'notification',
                'verbose_name_plural': 'notifications',
                'ordering': ['-created_at', '-id'],
                'indexes': [
                    models.Index(fields=['recipient', 'is_read'], name='core_notif_recipient_idx'),
                    models.Index(fields=['created_at'], name='core_notif_created_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='WishlistItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(max_length=200, verbose_name='title')),
                ('author', models.CharField(blank=True, default='', max_length=200, verbose_name='author')),
                ('isbn', models.CharField(blank=True, default='', max_length=20, validators=[core.validators.validate_isbn], verbose_name='ISBN')),
                ('notes', models.TextField(blank=True, default='', max_length=500, verbose_name='notes')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='updated at')),
                ('user', models.ForeignKey(help_text='User who wants the book', on_delete=django.db.models.deletion.CASCADE, related_name='wishlist_items', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'wishlist item',
                'verbose_name_plural': 'wishlist items',
                'ordering': ['-created_at', '-id'],
                'indexes': [models.Index(fields=['user'], name='core_wishlist_user_idx')],
                'constraints': [models.UniqueConstraint(condition=models.Q(('isbn', ''), _negated=True), fields=('user', 'isbn'), name='unique_wishlist_isbn_per_user')],
            },
        ),
    ]
