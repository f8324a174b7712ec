from django import forms

from masterdata.models import Material, Supplier, Transporter
from receiving.models import TbsReceipt


class TbsReceiptForm(forms.ModelForm):
    """Weighbridge ticket.

    The truck is either an existing transporter, or vehicle_plate + driver_name
    for a truck seen for the first time (looked up by plate, created if new).
    """

    vehicle_plate = forms.CharField(max_length=20, required=False)
    driver_name = forms.CharField(max_length=255, required=False)
    state = forms.ChoiceField(
        choices=[(TbsReceipt.State.DRAFT, "Draft"), (TbsReceipt.State.COMPLETED, "Completed")],
        required=False,
    )

    class Meta:
        model = TbsReceipt
        fields = [
            "received_on", "material", "supplier", "transporter",
            "weigher_name", "garden_location", "fruit_grade",
            "gross_weight", "tare_weight", "deduction_percent", "price_per_kg", "note",
        ]

    def __init__(self, *args, entity=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["transporter"].required = False
        self.fields["received_on"].required = False
        self.fields["fruit_grade"].required = False
        self.fields["deduction_percent"].required = False
        self.fields["price_per_kg"].required = False
        if entity is not None:
            self.fields["material"].queryset = Material.objects.filter(entity=entity, is_active=True)
            self.fields["supplier"].queryset = Supplier.objects.filter(entity=entity, is_active=True)
            self.fields["transporter"].queryset = Transporter.objects.filter(entity=entity)

    def clean_deduction_percent(self):
        pct = self.cleaned_data.get("deduction_percent")
        if pct is None:
            return self.instance.deduction_percent
        if pct < 0 or pct > 100:
            raise forms.ValidationError("Deduction must be between 0 and 100 percent.")
        return pct

    def clean_price_per_kg(self):
        price = self.cleaned_data.get("price_per_kg")
        if price is None:
            return self.instance.price_per_kg
        if price < 0:
            raise forms.ValidationError("Price may not be negative.")
        return price

    def clean_fruit_grade(self):
        return self.cleaned_data.get("fruit_grade") or self.instance.fruit_grade

    def clean_received_on(self):
        return self.cleaned_data.get("received_on") or self.instance.received_on

    def clean(self):
        cleaned = super().clean()

        gross, tare = cleaned.get("gross_weight"), cleaned.get("tare_weight")
        if gross is not None and tare is not None:
            if tare < 0:
                self.add_error("tare_weight", "Tare weight may not be negative.")
            elif gross < tare:
                self.add_error("gross_weight", "Gross weight must be at least the tare weight.")

        if not cleaned.get("transporter") and not (cleaned.get("vehicle_plate") or "").strip():
            self.add_error("transporter", "Choose a transporter or enter a vehicle plate.")

        return cleaned


class ReceiptStateForm(forms.Form):
    state = forms.ChoiceField(choices=TbsReceipt.State.choices)
