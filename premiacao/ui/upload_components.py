"""
Streamlit widgets for the monthly spreadsheet import.
"""
import os
import tempfile
from typing import Any, Callable, Dict, List, Optional

import pandas as pd
import streamlit as st

from premiacao.core.utils import month_label

def render_import_widget(
    month: str,
    get_template_fn: Callable[[], pd.DataFrame],
    import_fn: Callable[..., Dict[str, Any]],
    history_fn: Optional[Callable[[], List[Dict[str, Any]]]] = None
) -> Optional[Dict[str, Any]]:
    """
    Template download, file upload and import history for one month.

    Returns the import result dictionary, or None when nothing was imported.
    """
    st.subheader(f"📁 Importar planilha - {month_label(month)}")
    template_tab, upload_tab, history_tab = st.tabs(["📋 Modelo", "⬆️ Importar", "📊 Histórico"])

    with template_tab:
        template_df = get_template_fn()
        st.write("Colunas reconhecidas pelo cabeçalho: Nome/Name, Perfil/Cargo/Role, Salário/Salary, BSC/Vendas, MAT, Gerencial/Orçamento, EBITDA/Anual.")
        st.dataframe(template_df, use_container_width=True, hide_index=True)
        st.download_button(
            label="💾 Baixar modelo CSV",
            data=template_df.to_csv(index=False, sep=";"),
            file_name="modelo_premiacao.csv",
            mime="text/csv",
            key="save_bonus_template"
        )

    result = None
    with upload_tab:
        uploaded_file = st.file_uploader(
            "Planilha de atingimentos",
            type=['csv', 'xlsx', 'json'],
            key=f"upload_bonus_{month}"
        )
        if uploaded_file is not None and st.button("🚀 Importar", key=f"process_bonus_{month}", type="primary"):
            suffix = os.path.splitext(uploaded_file.name)[1]
            with tempfile.NamedTemporaryFile(delete=False, suffix=suffix) as tmp_file:
                tmp_file.write(uploaded_file.getvalue())
                tmp_file_path = tmp_file.name
            try:
                with st.spinner("Processando planilha..."):
                    result = import_fn(file_path=tmp_file_path, month=month, filename=uploaded_file.name)
            finally:
                os.unlink(tmp_file_path)
            _render_import_result(result)

    with history_tab:
        history = history_fn() if history_fn else []
        if history:
            st.dataframe(pd.DataFrame(history)[
                ['timestamp', 'month', 'filename', 'total_rows', 'processed_rows', 'error_rows', 'success']
            ], use_container_width=True, hide_index=True)
        else:
            st.info("Nenhuma importação registrada.")

    return result

def _render_import_result(result: Dict[str, Any]):
    upload_result = result.get('upload_result', {})
    if not result.get('success'):
        for error in upload_result.get('errors', []):
            st.error(error)
        return

    st.success("✅ Planilha importada com sucesso!")
    metrics_cols = st.columns(4)
    stats = result.get('employee_stats') or {}
    with metrics_cols[0]:
        st.metric("Linhas", upload_result.get('total_rows', 0))
    with metrics_cols[1]:
        st.metric("Processadas", upload_result.get('processed_rows', 0))
    with metrics_cols[2]:
        st.metric("Com erro", upload_result.get('error_rows', 0))
    with metrics_cols[3]:
        st.metric("Novos colaboradores", stats.get('created', 0))

    warnings = upload_result.get('warnings', [])
    if warnings:
        with st.expander("⚠️ Avisos"):
            for warning in warnings:
                st.warning(warning)

    row_errors = upload_result.get('row_errors', [])
    if row_errors:
        with st.expander(f"❌ Linhas rejeitadas ({len(row_errors)})"):
            for error in row_errors[:10]:
                st.error(f"Linha {error['row']}: {', '.join(error['errors'])}")
