"""
Base Serializers.

Common serializer mixins and helpers.
"""

from rest_framework import serializers


def choices_of(enum_cls):
    """ChoiceField choices from a str Enum."""
    return [member.value for member in enum_cls]


class RecursiveChildrenMixin:
    """
    Validates a `children` list with the serializer's own class.

    Errors are reported per child index, e.g. {"children": {"1": {...}}}.
    """

    def validate_children(self, value):
        validated = []
        errors = {}
        for index, child in enumerate(value):
            serializer = self.__class__(data=child, context=self.context)
            if serializer.is_valid():
                validated.append(serializer.validated_data)
            else:
                errors[str(index)] = serializer.errors
        if errors:
            raise serializers.ValidationError(errors)
        return validated
