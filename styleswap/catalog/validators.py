"""
Validation helpers for product payloads
"""
from rest_framework import serializers


def validate_string_list(value, field_name):
    """Accept a list of non-blank strings; a single string becomes a one item list"""
    if value in (None, ''):
        return []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        raise serializers.ValidationError(f'{field_name} must be a list')
    cleaned = []
    for item in value:
        if not isinstance(item, str):
            raise serializers.ValidationError(f'{field_name} must contain only strings')
        item = item.strip()
        if item:
            cleaned.append(item)
    return cleaned


def validate_rating(value):
    if value is None or not 1 <= int(value) <= 5:
        raise serializers.ValidationError('Rating must be between 1 and 5')
    return int(value)
