from decimal import Decimal

from django.db import migrations

# (slug, name, sedan, suv, commercial/truck)
SERVICE_LEVELS = [
    ("exterior", "Exterior Detail", "50", "60", "80"),
    ("interior", "Interior Detail", "120", "160", "200"),
    ("deep-interior", "Deep Interior Detail", "200", "240", "280"),
    ("package-deal", "Package Deal", "150", "200", "250"),
    ("disaster", "Disaster Recovery", "230", "270", "310"),
]


def seed_services(apps, schema_editor):
    Service = apps.get_model("catalog", "Service")
    db_alias = schema_editor.connection.alias
    for slug, name, sedan, suv, truck in SERVICE_LEVELS:
        Service.objects.using(db_alias).update_or_create(
            slug=slug,
            defaults={
                "name": name,
                "sedan_price": Decimal(sedan),
                "suv_price": Decimal(suv),
                "truck_price": Decimal(truck),
                "is_active": True,
            },
        )


def unseed_services(apps, schema_editor):
    Service = apps.get_model("catalog", "Service")
    db_alias = schema_editor.connection.alias
    Service.objects.using(db_alias).filter(slug__in=[row[0] for row in SERVICE_LEVELS]).delete()


class Migration(migrations.Migration):
    dependencies = [
        ("catalog", "0001_initial"),
    ]

    operations = [
        migrations.RunPython(seed_services, unseed_services),
    ]
