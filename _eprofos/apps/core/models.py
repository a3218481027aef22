# apps/core/models.py
from django.db import models
from django.db.models import Max
import uuid


class BaseModel(models.Model):
    """Modèle de base avec champs communs"""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    created_at = models.DateTimeField(auto_now_add=True, verbose_name="Créé le")
    updated_at = models.DateTimeField(auto_now=True, verbose_name="Modifié le")

    class Meta:
        abstract = True


class OrderedModel(BaseModel):
    """Modèle ordonnable au sein de son parent"""
    order_index = models.PositiveIntegerField(default=0, verbose_name="Ordre")

    # Nom du champ parent servant de périmètre à l'ordre
    order_scope = None

    class Meta:
        abstract = True
        ordering = ['order_index']

    @classmethod
    def next_order_index(cls, **scope):
        """Retourne l'index suivant dans le périmètre donné"""
        current = cls.objects.filter(**scope).aggregate(m=Max('order_index'))['m']
        return (current or 0) + 1

    def save(self, *args, **kwargs):
        if not self.order_index and self.order_scope:
            scope_value = getattr(self, f'{self.order_scope}_id', None)
            if scope_value:
                self.order_index = self.next_order_index(**{f'{self.order_scope}_id': scope_value})
        super().save(*args, **kwargs)
