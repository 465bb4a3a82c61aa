from django.contrib import admin

from .models import DocuSealConfiguration


@admin.register(DocuSealConfiguration)
class DocuSealConfigurationAdmin(admin.ModelAdmin):
    list_display = ['name', 'base_url', 'enabled', 'last_test_at', 'last_test_success']
    list_filter = ['enabled']
    exclude = ['api_key']
    readonly_fields = ['last_test_at', 'last_test_success', 'last_test_error']
