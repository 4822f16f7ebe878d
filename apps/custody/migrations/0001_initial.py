# Generated manually for the active_custody and custody_events collections

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='CustodyRecord',
            fields=[
                ('item_id', models.CharField(max_length=255, primary_key=True, serialize=False)),
                ('item_display_name', models.CharField(max_length=255)),
                ('holder_user_id', models.CharField(db_index=True, max_length=255)),
                ('holder_display_name', models.CharField(max_length=100)),
                ('checkout_time', models.DateTimeField(db_index=True)),
            ],
            options={
                'db_table': 'active_custody',
                'ordering': ['-checkout_time', 'item_id'],
            },
        ),
        migrations.CreateModel(
            name='CustodyEvent',
            fields=[
                ('event_id', models.CharField(max_length=32, primary_key=True, serialize=False)),
                ('item_id', models.CharField(db_index=True, max_length=255)),
                ('item_display_name', models.CharField(max_length=255)),
                ('holder_user_id', models.CharField(db_index=True, max_length=255)),
                ('holder_display_name', models.CharField(max_length=100)),
                ('checkout_time', models.DateTimeField()),
                ('checkin_time', models.DateTimeField(db_index=True)),
                ('checked_in_by_user_id', models.CharField(max_length=255)),
            ],
            options={
                'db_table': 'custody_events',
                'ordering': ['-checkin_time'],
            },
        ),
    ]
