from django.conf import settings
from django.db import models


class MessProfile(models.Model):
    """A tenant: one food-service business owned by a single user."""

    owner = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='mess_profile'
    )
    name = models.CharField(max_length=100)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name

    def subscriber_count(self):
        return self.memberships.filter(status='active').count()


class MessMembership(models.Model):
    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=['user', 'mess'],
                name='unique_membership_per_mess'
            )
        ]
        indexes = [
            models.Index(fields=['mess', 'status'], name='membership_mess_status_idx'),
        ]

    STATUS_CHOICES = [
        ('active', 'Active'),
        ('pending', 'Pending'),
        ('inactive', 'Inactive'),
        ('cancelled', 'Cancelled'),
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='memberships'
    )
    mess = models.ForeignKey(MessProfile, on_delete=models.CASCADE, related_name='memberships')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    joined_at = models.DateTimeField(auto_now_add=True)
