"""
Ordering Service für die Course Platform

Verwaltet die ``order``-Werte von Geschwister-Einträgen innerhalb eines
Elternobjekts (Units eines Kurses, Lektionen einer Unit):
- Einfügen an einer Position mit Verschieben der nachfolgenden Einträge
- Verschieben eines einzelnen Eintrags (Move)
- Umsortieren mehrerer Einträge in einem Schritt (Bulk Reorder)

Die Werte sind innerhalb des Elternobjekts eindeutig (Datenbank-Constraint),
aufsteigend und dürfen Lücken haben. Lücken werden nie geschlossen.

Jede Operation läuft in genau einer Transaktion; die Geschwister werden mit
``select_for_update`` gesperrt. Zeilen werden einzeln und in einer
Reihenfolge gespeichert, in der der Unique-Constraint nach jedem Statement
erfüllt ist.

Author: DSP Development Team
Version: 1.0.0
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from django.db import models, transaction

from ..exceptions import ValidationError

logger = logging.getLogger(__name__)


class OrderingService:
    """
    Service für sortierte Geschwister-Einträge.

    Args:
        model: Das sortierte Model (z.B. ``Unit`` oder ``Lesson``)
        parent_field: Name des Fremdschlüssels zum Elternobjekt
        label: Bezeichnung für Fehlermeldungen (z.B. "unit")
        parent_label: Bezeichnung des Elternobjekts (z.B. "course")

    Example:
        >>> service = OrderingService(Unit, "course", "unit", "course")
        >>> unit = service.insert(course, order=2, title="Cells")
    """

    def __init__(
        self,
        model: type[models.Model],
        parent_field: str,
        label: str,
        parent_label: str,
    ):
        self.model = model
        self.parent_field = parent_field
        self.label = label
        self.parent_label = parent_label
        self.logger = logger

    def siblings(self, parent) -> models.QuerySet:
        return self.model.objects.filter(**{self.parent_field: parent})

    def _lock_siblings(self, parent) -> List[models.Model]:
        # Muss innerhalb von transaction.atomic() aufgerufen werden
        return list(self.siblings(parent).select_for_update().order_by("order"))

    @staticmethod
    def _max_order(rows: Sequence[models.Model]) -> int:
        return max((row.order for row in rows), default=0)

    def next_order(self, parent) -> int:
        """Gibt den nächsten freien Wert am Ende der Liste zurück."""
        current = self.siblings(parent).aggregate(m=models.Max("order"))["m"]
        return (current or 0) + 1

    def insert(self, parent, order: Optional[int] = None, **fields: Any) -> models.Model:
        """
        Legt einen neuen Eintrag an der gewünschten Position an.

        Ist die Position belegt, werden alle Geschwister mit ``order >= k``
        um 1 nach hinten verschoben. Ohne Position wird am Ende angehängt.

        Args:
            parent: Elternobjekt
            order: Zielposition oder None
            **fields: Weitere Felder des neuen Eintrags

        Returns:
            Der neu erstellte Eintrag
        """
        with transaction.atomic():
            rows = self._lock_siblings(parent)

            if order is None:
                order = self._max_order(rows) + 1
            elif any(row.order == order for row in rows):
                shifted = [row for row in rows if row.order >= order]
                for row in reversed(shifted):
                    row.order += 1
                    row.save(update_fields=["order"])
                self.logger.info(
                    f"{len(shifted)} {self.label}(s) verschoben für Einfügen an Position {order}"
                )

            instance = self.model.objects.create(
                **{self.parent_field: parent}, order=order, **fields
            )

        return instance

    def move(self, instance: models.Model, new_order: int) -> models.Model:
        """
        Verschiebt einen Eintrag von seiner Position an ``new_order``.

        Nach vorne: Geschwister in ``[new, old)`` rücken um 1 nach hinten.
        Nach hinten: Geschwister in ``(old, new]`` rücken um 1 nach vorne.
        """
        old_order = instance.order
        if new_order == old_order:
            return instance

        parent = getattr(instance, self.parent_field)

        with transaction.atomic():
            rows = self._lock_siblings(parent)
            others = [row for row in rows if row.pk != instance.pk]

            # Eintrag auf einen freien Wert parken
            instance.order = self._max_order(rows) + 1
            instance.save(update_fields=["order"])

            if new_order < old_order:
                affected = [r for r in others if new_order <= r.order < old_order]
                for row in reversed(affected):
                    row.order += 1
                    row.save(update_fields=["order"])
            else:
                affected = [r for r in others if old_order < r.order <= new_order]
                for row in affected:
                    row.order -= 1
                    row.save(update_fields=["order"])

            instance.order = new_order
            instance.save(update_fields=["order"])

        self.logger.info(
            f"{self.label} {instance.pk} von Position {old_order} nach {new_order} verschoben"
        )
        return instance

    def validate_reorder(self, items: Any, current: Dict[int, int]) -> Dict[int, int]:
        """
        Prüft eine Umsortier-Anfrage ``[{id, order}, ...]``.

        Returns:
            Mapping id -> neue Position

        Raises:
            ValidationError: Leere oder fehlerhafte Liste, fremde oder doppelte
                IDs, doppelte Zielpositionen oder Kollision mit einem nicht
                umsortierten Geschwister-Eintrag
        """
        if not isinstance(items, list) or not items:
            raise ValidationError(f"Invalid {self.label} order data")

        targets: Dict[int, int] = {}
        for item in items:
            if not isinstance(item, dict):
                raise ValidationError(f"Invalid {self.label} order data")
            item_id, order = item.get("id"), item.get("order")
            try:
                item_id, order = int(item_id), int(order)
            except (TypeError, ValueError):
                raise ValidationError(f"Invalid {self.label} order data")
            if order < 0:
                raise ValidationError(f"Invalid {self.label} order data")
            if item_id in targets:
                raise ValidationError(f"Duplicate {self.label} id {item_id} in order data")
            targets[item_id] = order

        if len(set(targets.values())) != len(targets):
            raise ValidationError(f"Duplicate order values in {self.label} order data")

        if any(item_id not in current for item_id in targets):
            raise ValidationError(
                f"Some {self.label}s do not belong to this {self.parent_label}"
            )

        untouched = {order for pk, order in current.items() if pk not in targets}
        if untouched & set(targets.values()):
            raise ValidationError(
                f"Order values collide with other {self.label}s of this {self.parent_label}"
            )

        return targets

    def reorder(self, parent, items: Any) -> List[models.Model]:
        """
        Setzt die Positionen mehrerer Einträge atomar (alles oder nichts).

        Zuerst werden alle betroffenen Einträge oberhalb des aktuellen
        Maximums geparkt, danach erhalten sie ihre Zielwerte.

        Returns:
            Alle Geschwister in neuer Reihenfolge
        """
        with transaction.atomic():
            rows = self._lock_siblings(parent)
            targets = self.validate_reorder(
                items, {row.pk: row.order for row in rows}
            )
            by_id = {row.pk: row for row in rows}
            offset = max(self._max_order(rows), max(targets.values())) + 1

            for index, item_id in enumerate(targets):
                row = by_id[item_id]
                row.order = offset + index
                row.save(update_fields=["order"])

            for item_id, order in targets.items():
                row = by_id[item_id]
                row.order = order
                row.save(update_fields=["order"])

        self.logger.info(
            f"{len(targets)} {self.label}(s) umsortiert in {self.parent_label} {parent.pk}"
        )
        return list(self.siblings(parent).order_by("order"))
