from django.db import models

from core.errors import ImmutableRecordError


class WriteOnceModel(models.Model):
    """Abstract base for records that may be inserted once and never changed."""

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ImmutableRecordError(f"{self.__class__.__name__} records are write-once.")
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ImmutableRecordError(f"{self.__class__.__name__} records cannot be deleted.")
