# src/bedrock_views/core/__init__.py
"""
Core do Bedrock Views.

Este pacote reúne as peças transversais do engine de views, independentes
de qualquer sheet ou calculator específico.

Componentes principais:
    - values       → Value Model (variante fechada + coerções explícitas)
    - exceptions   → exceções tipadas (validação, cálculo, resolução, cancelamento)
    - errors       → payload canônico de diagnóstico e códigos estáveis
    - config       → carregamento, merge, hashing e settings tipados
    - context      → EngineContext (log estruturado por request)
    - cancellation → CancellationToken (cancelamento explícito + deadline)
    - engine       → orquestração de um request (fork/join, join, montagem)

Princípios fundamentais:
    - Nenhum estado global: catálogo, configuração e contexto são injetados
    - Toda falha tem um código estável e um escopo de contenção explícito

Limites explícitos:
    - Não busca dados de nenhuma fonte
    - Não persiste linhas nem configuração
"""
