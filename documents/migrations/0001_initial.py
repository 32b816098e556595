import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('permits', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Document',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('filename', models.CharField(max_length=255)),
                ('file_path', models.CharField(help_text='Key of the blob in the object store', max_length=500)),
                ('file_size', models.PositiveBigIntegerField(default=0)),
                ('mime_type', models.CharField(blank=True, max_length=150)),
                ('document_type', models.CharField(blank=True, max_length=50)),
                ('state', models.CharField(choices=[('draft', 'Draft'), ('linked', 'Linked')], max_length=10)),
                ('draft_category', models.CharField(blank=True, choices=[('intent_draft', 'Intent Registration'), ('application_draft', 'Permit Application')], max_length=30, null=True)),
                ('uploaded_at', models.DateTimeField(auto_now_add=True)),
                ('intent_registration', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='documents', to='permits.intentregistration')),
                ('permit', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='documents', to='permits.permitapplication')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='documents', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-uploaded_at'],
                'indexes': [
                    models.Index(fields=['user', 'state', 'draft_category'], name='documents_d_user_id_0c3a5e_idx'),
                    models.Index(fields=['file_path'], name='documents_d_file_pa_7d1f2b_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(('state', 'draft'), ('draft_category__isnull', False), ('permit__isnull', True), ('intent_registration__isnull', True)),
                            models.Q(('state', 'linked'), ('permit__isnull', False), ('intent_registration__isnull', True)),
                            models.Q(('state', 'linked'), ('permit__isnull', True), ('intent_registration__isnull', False)),
                            _connector='OR',
                        ),
                        name='document_draft_or_linked_to_one_parent',
                    ),
                ],
            },
        ),
    ]
