from django.conf import settings
from rest_framework import serializers

from portal.services.search import SEARCH_TYPES


class SearchFiltersSerializer(serializers.Serializer):
    types = serializers.ListField(child=serializers.ChoiceField(choices=SEARCH_TYPES + ('user',)), required=False)
    projects = serializers.ListField(child=serializers.IntegerField(min_value=1), required=False)


class GlobalSearchSerializer(serializers.Serializer):
    query = serializers.CharField(max_length=200, required=False, allow_blank=True, default='', trim_whitespace=False)
    filters = SearchFiltersSerializer(required=False)
    limit = serializers.IntegerField(required=False, min_value=1)

    def validate_limit(self, value):
        return min(value, settings.SEARCH_MAX_LIMIT)


class SuggestionsSerializer(serializers.Serializer):
    query = serializers.CharField(max_length=200, required=False, allow_blank=True, default='')
