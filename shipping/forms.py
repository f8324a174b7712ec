from django import forms

from inventory.models import Tank
from masterdata.models import Buyer, Material, Transporter
from shipping.models import ProductShipment


class ProductShipmentForm(forms.ModelForm):
    """Delivery order. The truck is an existing transporter or a plate + driver
    seen for the first time, the same as at TBS receiving."""

    vehicle_plate = forms.CharField(max_length=20, required=False)
    driver_name = forms.CharField(max_length=255, required=False)
    state = forms.ChoiceField(
        choices=[(ProductShipment.State.DRAFT, "Draft"), (ProductShipment.State.COMPLETED, "Completed")],
        required=False,
    )

    class Meta:
        model = ProductShipment
        fields = [
            "shipped_on", "buyer", "contract_no", "material", "tank", "transporter", "weigher_name",
            "tare_method", "tare_weight", "tare_weighed_at",
            "gross_method", "gross_weight", "gross_weighed_at",
            "ffa", "moisture", "dirt", "note",
        ]

    def __init__(self, *args, entity=None, **kwargs):
        super().__init__(*args, **kwargs)
        for name in ("shipped_on", "transporter", "tare_method", "gross_method", "ffa", "moisture", "dirt"):
            self.fields[name].required = False
        if entity is not None:
            self.fields["buyer"].queryset = Buyer.objects.filter(entity=entity, is_active=True)
            self.fields["material"].queryset = Material.objects.filter(entity=entity, is_active=True)
            self.fields["tank"].queryset = Tank.objects.filter(entity=entity)
            self.fields["transporter"].queryset = Transporter.objects.filter(entity=entity)

    def _default(self, name):
        value = self.cleaned_data.get(name)
        return getattr(self.instance, name) if value in (None, "") else value

    def clean_shipped_on(self):
        return self._default("shipped_on")

    def clean_tare_method(self):
        return self._default("tare_method")

    def clean_gross_method(self):
        return self._default("gross_method")

    def _clean_percent(self, name):
        value = self._default(name)
        if value < 0 or value > 100:
            raise forms.ValidationError("Must be between 0 and 100 percent.")
        return value

    def clean_ffa(self):
        return self._clean_percent("ffa")

    def clean_moisture(self):
        return self._clean_percent("moisture")

    def clean_dirt(self):
        return self._clean_percent("dirt")

    def clean(self):
        cleaned = super().clean()

        gross, tare = cleaned.get("gross_weight"), cleaned.get("tare_weight")
        if gross is not None and tare is not None:
            if tare < 0:
                self.add_error("tare_weight", "Tare weight may not be negative.")
            elif gross <= tare:
                self.add_error("gross_weight", "Gross weight must be greater than the tare weight.")

        tank, material = cleaned.get("tank"), cleaned.get("material")
        if tank is not None and material is not None and tank.material_id != material.pk:
            self.add_error("tank", f"Tank {tank.name} does not hold {material.code}.")

        if not cleaned.get("transporter") and not (cleaned.get("vehicle_plate") or "").strip():
            self.add_error("transporter", "Choose a transporter or enter a vehicle plate.")

        return cleaned


class ShipmentStateForm(forms.Form):
    state = forms.ChoiceField(choices=ProductShipment.State.choices)
