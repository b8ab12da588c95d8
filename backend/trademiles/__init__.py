"""TradeMiles - gestão de compra e venda de milhas."""

__version__ = "1.0.0"
