"""ShopDesk: access control and tenant isolation for a multi-center shop back office"""

__version__ = "0.1.0"
