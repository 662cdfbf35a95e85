"""
Синтаксис шаблонов: токены, лексер, узлы AST и парсер.
"""
