"""
Factories for resources app models.
"""

import factory
from factory.django import DjangoModelFactory

from apps.core.constants import Priority
from apps.resources.models import ResourceRequest
from tests.accounts.factories import ProfessionalFactory
from tests.incidents.factories import EventFactory


class ResourceRequestFactory(DjangoModelFactory):
    """Factory for ResourceRequest model."""

    class Meta:
        model = ResourceRequest

    event = factory.SubFactory(EventFactory)
    resource_name = "Oxygen cylinders"
    quantity = 4
    priority = Priority.HIGH
    created_by = factory.SubFactory(ProfessionalFactory)
