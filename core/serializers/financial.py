import re

from rest_framework import serializers


class LeadingIntegerField(serializers.IntegerField):
    """Integer read from the leading digits of the value ("12abc" is 12).

    Values without leading digits fall back to the field default, so a
    malformed query never fails at this layer.
    """
    LEADING_INT = re.compile(r'\s*([+-]?\d+)')

    def to_internal_value(self, data):
        m = self.LEADING_INT.match(str(data))
        if m is None:
            return self.default
        return int(m.group(1))


class FinancialOverviewQuerySerializer(serializers.Serializer):
    # No range checks here: the overview collaborator owns them.
    page = LeadingIntegerField(default=1)
    limit = LeadingIntegerField(default=10)
    sortBy = serializers.CharField(default='paymentDeficit')
    sortOrder = serializers.CharField(default='desc')
    search = serializers.CharField(default=None, trim_whitespace=False)


class FinancialPatientSearchQuerySerializer(serializers.Serializer):
    q = serializers.CharField(default='', allow_blank=True, trim_whitespace=False)
    limit = LeadingIntegerField(default=10)
