from django.core.management.base import BaseCommand

from compliance.services.frameworks import initialize_default_frameworks


class Command(BaseCommand):
    help = "Seed the default compliance framework catalog (ISO 27005, NIST RMF, GDPR)"

    def handle(self, *args, **options):
        frameworks = initialize_default_frameworks()
        if not frameworks:
            self.stdout.write(self.style.WARNING("Frameworks already initialized; nothing to do."))
            return
        for framework in frameworks:
            self.stdout.write(f"Created {framework.name} {framework.version}")
        self.stdout.write(self.style.SUCCESS(f"Seeded {len(frameworks)} frameworks."))
