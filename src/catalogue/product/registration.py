"""Adding products to the catalogue and restocking them: commands and handler."""

from protean import handle
from protean.fields import Decimal, Identifier, Integer, String
from protean.utils.globals import current_domain

from catalogue.domain import catalogue, logger
from catalogue.product.product import Product
from shared.errors import ConflictError


@catalogue.command(part_of="Product")
class AddProduct:
    sku: String(required=True, max_length=50)
    name: String(required=True, max_length=255)
    price: Decimal(required=True, min_value=0)
    stock: Integer(default=0, min_value=0)


@catalogue.command(part_of="Product")
class RestockProduct:
    product_id: Identifier(required=True)
    quantity: Integer(required=True, min_value=1)


@catalogue.command_handler(part_of=Product)
class ProductRegistrationHandler:
    @handle(AddProduct)
    def add_product(self, command):
        repo = current_domain.repository_for(Product)
        if repo.query.filter(sku=command.sku.strip()).all().total:
            raise ConflictError(f"Product SKU already exists: {command.sku}", sku=command.sku)

        product = Product.register(command.sku, command.name, command.price, command.stock)
        repo.add(product)
        logger.info("product_added", product_id=str(product.id), sku=product.sku, stock=product.stock)
        return str(product.id)

    @handle(RestockProduct)
    def restock_product(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.restock(command.quantity)
        repo.add(product)
        return product.stock
