"""pgxrisk - pharmacogenomic drug risk classification from VCF genotypes."""

__version__ = "1.0.0"
