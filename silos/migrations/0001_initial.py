from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Post',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(max_length=300)),
                ('slug', models.SlugField(max_length=255)),
                ('content_html', models.TextField(blank=True)),
                ('content_json', models.JSONField(blank=True, null=True)),
                ('target_keyword', models.CharField(blank=True, max_length=200)),
                ('focus_keyword', models.CharField(blank=True, max_length=200)),
                ('meta_description', models.TextField(blank=True)),
                ('canonical_path', models.CharField(blank=True, max_length=500)),
                ('published', models.BooleanField(default=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
        ),
        migrations.CreateModel(
            name='Silo',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('slug', models.SlugField(max_length=200, unique=True)),
                ('description', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='SiloPost',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('role', models.CharField(choices=[('PILLAR', 'Pillar'), ('SUPPORT', 'Support'), ('AUX', 'Auxiliary')], default='SUPPORT', max_length=10)),
                ('position', models.PositiveIntegerField(default=0)),
                ('level', models.PositiveSmallIntegerField(blank=True, null=True)),
                ('parent_post', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='child_memberships', to='silos.post')),
                ('post', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='memberships', to='silos.post')),
                ('silo', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='memberships', to='silos.silo')),
            ],
            options={
                'ordering': ['position', 'id'],
                'unique_together': {('silo', 'post')},
            },
        ),
    ]
