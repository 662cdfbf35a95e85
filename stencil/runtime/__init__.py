"""
Среда выполнения шаблонов: модель значений, форматтеры, контекст и рендерер.
"""
