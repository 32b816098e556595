from django.conf import settings
from django.db import models


class Entity(models.Model):
    """An individual or organisation that holds intents, applications and permits."""
    class EntityType(models.TextChoices):
        INDIVIDUAL = 'individual', 'Individual'
        COMPANY = 'company', 'Company'
        GOVERNMENT = 'government', 'Government'

    owner = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='entities')
    name = models.CharField(max_length=200)
    entity_type = models.CharField(max_length=20, choices=EntityType.choices)
    registration_number = models.CharField(max_length=100, null=True, blank=True)
    email = models.EmailField(null=True, blank=True)
    phone = models.CharField(max_length=30, null=True, blank=True)
    address = models.TextField(null=True, blank=True)
    is_suspended = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name']
        verbose_name_plural = "Entities"

    def __str__(self):
        return self.name
