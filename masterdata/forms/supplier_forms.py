from django import forms

from masterdata.forms.material_forms import EntityScopedFormMixin
from masterdata.models import Buyer, Supplier, Transporter


class SupplierForm(EntityScopedFormMixin, forms.ModelForm):
    unique_field = "code"

    class Meta:
        model = Supplier
        fields = [
            "supplier_type",
            "code",
            "name",
            "owner_name",
            "phone",
            "address",
            "bank_name",
            "bank_account_no",
            "bank_account_name",
        ]

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        # left empty => allocated from the SUP series on save
        self.fields["code"].required = False


class TransporterForm(EntityScopedFormMixin, forms.ModelForm):
    unique_field = "vehicle_plate"

    class Meta:
        model = Transporter
        fields = ["vehicle_plate", "driver_name", "phone"]

    def clean_vehicle_plate(self):
        return " ".join(self.cleaned_data["vehicle_plate"].upper().split())


class BuyerForm(EntityScopedFormMixin, forms.ModelForm):
    unique_field = "code"

    class Meta:
        model = Buyer
        fields = [
            "code",
            "name",
            "contact_person",
            "email",
            "phone",
            "address",
            "npwp",
            "tax_status",
            "bank_name",
            "bank_account_no",
            "bank_account_name",
        ]

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        # left empty => allocated from the BYR series on save
        self.fields["code"].required = False
        self.fields["tax_status"].required = False

    def clean_tax_status(self):
        return self.cleaned_data.get("tax_status") or self.instance.tax_status
