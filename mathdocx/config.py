# mathdocx/config.py
from typing import Optional

import yaml
from pydantic import ValidationError

from .schemas import ConverterConfig

DEFAULT_CONFIG_FILE = 'config.yaml'


def load_config(path: Optional[str] = DEFAULT_CONFIG_FILE) -> ConverterConfig:
    """
    从 YAML 文件加载转换器配置（段落样式与图片设置）。

    文件缺失或格式不正确时打印警告并回退到默认配置。

    Args:
        path (Optional[str]): 配置文件路径，None 表示直接使用默认配置。

    Returns:
        ConverterConfig: 只读的配置对象。
    """
    if path is None:
        return ConverterConfig()
    try:
        with open(path, 'r', encoding='utf-8') as f:
            raw_config = yaml.safe_load(f) or {}
        config = ConverterConfig.model_validate(raw_config)
        print(f"✅ {path} 加载成功。")
        return config
    except FileNotFoundError:
        print(f"⚠️ {path} 未找到，使用默认配置。")
    except (yaml.YAMLError, ValidationError) as e:
        print(f"⚠️ {path} 格式不正确，使用默认配置: {e}")
    return ConverterConfig()
