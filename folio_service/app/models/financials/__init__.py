from .tax_configurations import TaxConfiguration, TaxExemption
