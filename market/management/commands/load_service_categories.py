# market/management/commands/load_service_categories.py

from django.core.management.base import BaseCommand
from django.db import transaction

from market.categories import CATEGORIES
from market.models import ServiceCategory


class Command(BaseCommand):
    help = "Charge les catégories de services prédéfinies dans la base."

    @transaction.atomic
    def handle(self, *args, **kwargs):
        by_slug = {}
        created_count = 0
        for order, (slug, parent_slug, name_en, name_fr, name_de, name_ar, icon) in enumerate(CATEGORIES):
            obj, created = ServiceCategory.objects.update_or_create(
                slug=slug,
                defaults={
                    "parent": by_slug.get(parent_slug),
                    "name_en": name_en,
                    "name_fr": name_fr,
                    "name_de": name_de,
                    "name_ar": name_ar,
                    "icon": icon,
                    "sort_order": order,
                    "is_active": True,
                },
            )
            by_slug[slug] = obj
            if created:
                created_count += 1
                self.stdout.write(self.style.SUCCESS(f"✅ Créé : {obj.name_fr}"))
            else:
                self.stdout.write(f"🔄 Déjà existant : {obj.name_fr}")

        self.stdout.write(self.style.SUCCESS(
            f"✔️ Chargement de {len(CATEGORIES)} catégories terminé ({created_count} nouvelles)."))
