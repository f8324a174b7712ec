from django import forms

from inventory.models import MovementType, Tank
from masterdata.forms.material_forms import EntityScopedFormMixin
from masterdata.models import Material

QTY = {"max_digits": 18, "decimal_places": 3}


class StockMovementForm(forms.Form):
    """Manual stock movement. quantity is signed; movement_type is optional
    (derived from the sign) and may be ADJUSTMENT for stock-take corrections."""

    material = forms.ModelChoiceField(queryset=Material.objects.none())
    quantity = forms.DecimalField(**QTY)
    movement_type = forms.ChoiceField(
        choices=[c for c in MovementType.choices if c[0] != MovementType.TRANSFER],
        required=False,
    )
    reference = forms.CharField(max_length=255, required=False)
    note = forms.CharField(max_length=255, required=False)
    transaction_at = forms.DateTimeField(required=False)

    def __init__(self, *args, entity=None, **kwargs):
        super().__init__(*args, **kwargs)
        if entity is not None:
            self.fields["material"].queryset = Material.objects.filter(entity=entity, is_active=True)


class TankForm(EntityScopedFormMixin, forms.ModelForm):
    unique_field = "name"

    class Meta:
        model = Tank
        fields = ["material", "name", "capacity"]

    def __init__(self, *args, entity=None, **kwargs):
        super().__init__(*args, entity=entity, **kwargs)
        if entity is not None and "material" in self.fields:
            self.fields["material"].queryset = Material.objects.filter(entity=entity, is_active=True)

    def clean_capacity(self):
        capacity = self.cleaned_data["capacity"]
        if capacity is not None and capacity <= 0:
            raise forms.ValidationError("Capacity must be greater than zero.")
        return capacity


class TankUpdateForm(TankForm):
    """The material of a tank never changes; the volume only through movements."""

    class Meta(TankForm.Meta):
        fields = ["name", "capacity"]

    def clean_capacity(self):
        capacity = super().clean_capacity()
        if capacity is not None and capacity < self.instance.current_volume:
            raise forms.ValidationError(
                f"Capacity may not be lower than the current volume ({self.instance.current_volume})."
            )
        return capacity


class TankAdminForm(forms.ModelForm):
    class Meta:
        model = Tank
        fields = "__all__"

    def clean_capacity(self):
        capacity = self.cleaned_data.get("capacity")
        if capacity is None:
            return capacity
        if capacity <= 0:
            raise forms.ValidationError("Capacity must be greater than zero.")
        if self.instance.pk and capacity < self.instance.current_volume:
            raise forms.ValidationError(
                f"Capacity may not be lower than the current volume ({self.instance.current_volume})."
            )
        return capacity


class TankMovementForm(forms.Form):
    quantity = forms.DecimalField(**QTY)
    reference = forms.CharField(max_length=255, required=False)
    note = forms.CharField(max_length=255, required=False)
    transaction_at = forms.DateTimeField(required=False)


class TankTransferForm(forms.Form):
    source_tank = forms.IntegerField()
    destination_tank = forms.IntegerField()
    quantity = forms.DecimalField(**QTY)
    note = forms.CharField(max_length=255, required=False)
