"""Product price list. Prices are in rupees per student."""

from eduportal.schemas.billing import ProductPrice

PER_STUDENT_ONCE = "school-safal"

PRODUCT_PRICING: dict[str, ProductPrice] = {
    "parikshanai-questionbank": ProductPrice(
        name="ParikshanAI + Question Bank", price=10, unit="per student/month"
    ),
    "school-safal": ProductPrice(name="School SAFAL", price=2, unit="per student"),
    "siteforgeai": ProductPrice(name="SiteForgeAI", price=0, unit="coming soon"),
    "patashala-erp": ProductPrice(name="Patashala ERP", price=0, unit="coming soon"),
    "connecto": ProductPrice(name="Connecto", price=0, unit="coming soon"),
}


def get_price(product_type: str) -> ProductPrice | None:
    return PRODUCT_PRICING.get(product_type)


def is_purchasable(product_type: str) -> bool:
    product = get_price(product_type)
    return product is not None and product.price > 0


def compute_total(
    product_type: str, price: int, student_count: int, contract_years: int
) -> int:
    """Contract value in rupees.

    School SAFAL is billed once per student; everything else is billed
    monthly for the whole contract.
    """
    if product_type == PER_STUDENT_ONCE:
        return price * student_count
    return price * student_count * contract_years * 12
