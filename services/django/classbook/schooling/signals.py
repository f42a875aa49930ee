from django.db.models.signals import pre_save
from django.dispatch import receiver
from django.utils import timezone

from schooling.models import Student


@receiver(pre_save, sender=Student)
def default_enrollment_date(sender, instance: Student, **kwargs):
    # New students without an explicit enrollment date are enrolled today.
    if instance.enrollment_date is None and instance.pk is None:
        instance.enrollment_date = timezone.localdate()
