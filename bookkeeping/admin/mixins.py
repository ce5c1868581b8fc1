class TenantAdminMixin:
    """
    Enforce tenant isolation in Django admin.
    Uses request.organization (set by CurrentOrganizationMiddleware)
    or falls back to request.user.default_organization.
    """

    def _get_request_organization(self, request):
        organization = getattr(request, "organization", None)
        if organization is None:
            user = getattr(request, "user", None)
            organization = getattr(user, "default_organization", None)
        return organization

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        # Superusers see every organization
        if request.user.is_superuser:
            return qs
        organization = self._get_request_organization(request)
        if organization is None:
            return qs.none()
        return qs.filter(organization=organization)

    def formfield_for_foreignkey(self, db_field, request, **kwargs):
        """
        Restrict foreign key dropdowns to the current organization:
        the organization field itself, and any related model that
        carries an organization (customer, item, tax rate, ...).
        """
        if not request.user.is_superuser:
            organization = self._get_request_organization(request)
            rel_model = db_field.related_model
            if db_field.name == "organization":
                kwargs["queryset"] = (
                    rel_model.objects.filter(pk=organization.pk)
                    if organization is not None
                    else rel_model.objects.none()
                )
            elif any(f.name == "organization" for f in rel_model._meta.fields):
                kwargs["queryset"] = (
                    rel_model._default_manager.filter(organization=organization)
                    if organization is not None
                    else rel_model._default_manager.none()
                )
        return super().formfield_for_foreignkey(db_field, request, **kwargs)

    def save_model(self, request, obj, form, change):
        # Objects are always owned by the admin's organization (unless superuser)
        if not request.user.is_superuser:
            organization = self._get_request_organization(request)
            if organization is not None:
                obj.organization = organization
        super().save_model(request, obj, form, change)
