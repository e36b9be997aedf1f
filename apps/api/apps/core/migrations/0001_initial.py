# Generated migration for core app: treatment rooms

import uuid
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
    ]

    operations = [
        migrations.CreateModel(
            name='Room',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('room_code', models.CharField(max_length=20, unique=True)),
                ('room_name', models.CharField(max_length=255)),
                ('room_type', models.CharField(
                    choices=[
                        ('standard', 'Standard Chair'),
                        ('surgery', 'Surgery'),
                        ('xray', 'X-Ray'),
                        ('orthodontics', 'Orthodontics'),
                    ],
                    default='standard',
                    max_length=20
                )),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Room',
                'verbose_name_plural': 'Rooms',
                'db_table': 'room',
                'indexes': [models.Index(fields=['is_active'], name='idx_room_active')],
            },
        ),
    ]
