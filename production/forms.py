from django import forms
from django.core.exceptions import ValidationError

from masterdata.models import Material
from production.models import ProductionBatch

QTY = {"max_digits": 18, "decimal_places": 3}


class _EntityMaterialsMixin:
    material_fields = ()

    def __init__(self, *args, entity=None, **kwargs):
        super().__init__(*args, **kwargs)
        if entity is not None:
            for name in self.material_fields:
                self.fields[name].queryset = Material.objects.filter(entity=entity, is_active=True)


class ProductionBatchForm(_EntityMaterialsMixin, forms.Form):
    material_fields = ("input_material",)

    input_material = forms.ModelChoiceField(queryset=Material.objects.none())
    input_quantity = forms.DecimalField(**QTY)
    production_date = forms.DateField(required=False)
    state = forms.ChoiceField(
        choices=[(s, label) for s, label in ProductionBatch.State.choices if s != ProductionBatch.State.CANCELLED],
        required=False,
    )


class ProductionBatchUpdateForm(_EntityMaterialsMixin, forms.Form):
    """PUT body; every field is optional."""
    material_fields = ("input_material",)

    input_material = forms.ModelChoiceField(queryset=Material.objects.none(), required=False)
    input_quantity = forms.DecimalField(required=False, **QTY)
    production_date = forms.DateField(required=False)


class ProductionOutputForm(_EntityMaterialsMixin, forms.Form):
    material_fields = ("output_material",)

    output_material = forms.ModelChoiceField(queryset=Material.objects.none())
    output_quantity = forms.DecimalField(**QTY)


class StateChangeForm(forms.Form):
    state = forms.ChoiceField(choices=ProductionBatch.State.choices)


class DateRangeForm(forms.Form):
    start = forms.DateField()
    end = forms.DateField()

    def clean(self):
        cleaned = super().clean()
        if cleaned.get("start") and cleaned.get("end") and cleaned["start"] > cleaned["end"]:
            raise ValidationError("start must not be after end.")
        return cleaned


def clean_outputs(rows, entity):
    """Validate the JSON list of outputs; returns [(material, quantity)]."""
    if not isinstance(rows, list):
        raise ValidationError({"outputs": "outputs must be a list."})

    outputs = []
    errors = {}
    for i, row in enumerate(rows):
        form = ProductionOutputForm(row if isinstance(row, dict) else {}, entity=entity)
        if form.is_valid():
            outputs.append((form.cleaned_data["output_material"], form.cleaned_data["output_quantity"]))
        else:
            errors[f"outputs[{i}]"] = [e for errs in form.errors.values() for e in errs]
    if errors:
        raise ValidationError(errors)
    return outputs
