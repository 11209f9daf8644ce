from django.contrib import admin

from .models import (
    AgeRestrictedProduct,
    AgeVerificationSession,
    CommissionRecord,
    FulfillmentLocation,
    LocationInventory,
    Payout,
    PayoutAdjustment,
    RoutingRule,
    Vendor,
    VendorMonthlyVolume,
    VendorOrder,
)


@admin.register(Vendor)
class VendorAdmin(admin.ModelAdmin):
    list_display = ('name', 'handle', 'vendor_type', 'status', 'commission_rate', 'commission_tier', 'created_at')
    list_filter = ('vendor_type', 'status', 'commission_tier', 'stripe_onboarding_completed')
    search_fields = ('name', 'handle', 'email', 'business_name')
    prepopulated_fields = {'handle': ('name',)}
    readonly_fields = ('id', 'created_at', 'updated_at')

    fieldsets = (
        (None, {
            'fields': ('id', 'name', 'handle', 'email', 'phone', 'vendor_type', 'status')
        }),
        ('Commission', {
            'fields': ('commission_rate', 'commission_tier')
        }),
        ('Payouts', {
            'fields': ('stripe_account_id', 'stripe_onboarding_completed')
        }),
        ('Business', {
            'fields': ('business_name', 'tax_id', 'address_line_1', 'address_line_2', 'city', 'state',
                       'postal_code', 'country_code', 'verified_at'),
            'classes': ('collapse',)
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        })
    )


class CommissionRecordInline(admin.TabularInline):
    model = CommissionRecord
    extra = 0
    fields = ('order_id', 'order_amount', 'commission_rate', 'commission_amount', 'net_amount', 'status')
    readonly_fields = fields
    can_delete = False


@admin.register(VendorOrder)
class VendorOrderAdmin(admin.ModelAdmin):
    list_display = ('short_id', 'order_id', 'vendor_name', 'status', 'subtotal', 'commission_amount',
                    'vendor_payout', 'created_at')
    list_filter = ('status', 'vendor_type', 'created_at')
    search_fields = ('order_id', 'vendor_name', 'tracking_number')
    readonly_fields = ('id', 'created_at', 'updated_at', 'fulfilled_at', 'shipped_at', 'delivered_at',
                       'cancelled_at')
    inlines = [CommissionRecordInline]

    def short_id(self, obj):
        return str(obj.id)[:8]
    short_id.short_description = "ID"


@admin.register(CommissionRecord)
class CommissionRecordAdmin(admin.ModelAdmin):
    list_display = ('order_id', 'vendor', 'commission_tier', 'order_amount', 'commission_amount', 'net_amount',
                    'status', 'created_at')
    list_filter = ('status', 'vendor_type', 'commission_tier', 'created_at')
    search_fields = ('order_id', 'vendor__name')
    readonly_fields = ('id', 'created_at', 'updated_at', 'collected_at', 'paid_at', 'reversed_at')


@admin.register(VendorMonthlyVolume)
class VendorMonthlyVolumeAdmin(admin.ModelAdmin):
    list_display = ('vendor', 'year', 'month', 'total_sales', 'order_count', 'commission_tier')
    list_filter = ('year', 'month', 'commission_tier')
    search_fields = ('vendor__name',)


class LocationInventoryInline(admin.TabularInline):
    model = LocationInventory
    extra = 0
    fields = ('variant_id', 'quantity')


@admin.register(FulfillmentLocation)
class FulfillmentLocationAdmin(admin.ModelAdmin):
    list_display = ('code', 'name', 'location_type', 'state', 'is_active', 'current_capacity_percent', 'vendor')
    list_filter = ('location_type', 'is_active', 'country_code', 'state')
    search_fields = ('code', 'name', 'city')
    readonly_fields = ('id', 'created_at', 'updated_at')
    inlines = [LocationInventoryInline]


@admin.register(RoutingRule)
class RoutingRuleAdmin(admin.ModelAdmin):
    list_display = ('name', 'rule_type', 'field_path', 'operator', 'action', 'priority', 'is_active')
    list_filter = ('rule_type', 'action', 'is_active')
    search_fields = ('name', 'description', 'field_path')
    ordering = ('-priority', 'name')


class PayoutAdjustmentInline(admin.TabularInline):
    model = PayoutAdjustment
    extra = 0
    fields = ('adjustment_type', 'amount', 'description')


@admin.register(Payout)
class PayoutAdmin(admin.ModelAdmin):
    list_display = ('short_id', 'vendor', 'amount', 'currency', 'status', 'commission_count', 'transfer_id',
                    'created_at')
    list_filter = ('status', 'currency', 'created_at')
    search_fields = ('vendor__name', 'transfer_id')
    readonly_fields = ('id', 'created_at', 'updated_at', 'processed_at', 'paid_at', 'failed_at', 'reversed_at')
    inlines = [PayoutAdjustmentInline]

    def short_id(self, obj):
        return str(obj.id)[:8]
    short_id.short_description = "ID"


@admin.register(AgeVerificationSession)
class AgeVerificationSessionAdmin(admin.ModelAdmin):
    list_display = ('customer_id', 'method', 'status', 'age_threshold', 'verified_age', 'expires_at', 'created_at')
    list_filter = ('status', 'method')
    search_fields = ('customer_id',)
    readonly_fields = ('id', 'token', 'created_at', 'updated_at', 'verified_at')


@admin.register(AgeRestrictedProduct)
class AgeRestrictedProductAdmin(admin.ModelAdmin):
    list_display = ('product_id', 'minimum_age', 'compliance_category', 'requires_id_check', 'is_active')
    list_filter = ('compliance_category', 'requires_id_check', 'is_active')
    search_fields = ('product_id', 'restriction_reason')
