"""Union Digitale storefront service."""
