"""
coin_market
~~~~~~~~~~~

行情数据核心包：
- 上游接口抓取（CoinPaprika / CryptoCompare / CoinGecko / open.er-api 汇率）
- 归一化为统一的内部模型
- 带 TTL 的进程内缓存、指数退避重试、失败时回退到过期缓存

命令行入口：coin-market（coin_market.cli:main）
"""

from coin_market.service import MarketDataService, create_service

__all__ = ["MarketDataService", "create_service"]
