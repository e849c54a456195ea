import streamlit as st
import pandas as pd
import plotly.express as px

from premiacao.core.config import settings
from premiacao.core.utils import format_brl, month_options
from premiacao.bonus.scales import KPIType, EmployeeRole, KPI_LABELS
from premiacao.employees.manager import EmployeeManager
from premiacao.performance.manager import PerformanceManager
from premiacao.reports.bonus_report import BonusReports, export_filename
from premiacao.ui.upload_components import render_import_widget

TENANT_ID = "default"

st.set_page_config(
    page_title="Premiação KPI",
    layout="wide",
    page_icon="🏆",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    .main-header {
        background: linear-gradient(90deg, #4c1d95, #7c3aed);
        padding: 1rem;
        border-radius: 10px;
        color: white;
        text-align: center;
        margin-bottom: 2rem;
    }
</style>
""", unsafe_allow_html=True)

@st.cache_resource
def get_managers():
    return (
        EmployeeManager(TENANT_ID),
        PerformanceManager(TENANT_ID),
        BonusReports(TENANT_ID),
    )

def masked(value: float, show: bool) -> str:
    return format_brl(value) if show else "••••••"

def show_sidebar(employee_manager: EmployeeManager):
    options = month_options()
    labels = {key: label for key, label in options}
    month = st.sidebar.selectbox(
        "📅 Mês de referência",
        [key for key, _ in options],
        format_func=lambda key: labels[key],
    )
    stored_visibility = employee_manager.salaries_visible()
    show_salaries = st.sidebar.toggle("Exibir salários", value=stored_visibility, key="show_salaries")
    if show_salaries != stored_visibility:
        employee_manager.set_salaries_visible(show_salaries)

    st.sidebar.markdown("---")
    st.sidebar.markdown("### 👥 Colaboradores")
    employees = employee_manager.list_employees()
    selected_id = None
    if employees:
        names = {e["id"]: f"{e['name']} ({e['role']})" for e in employees}
        selected_id = st.sidebar.radio("Selecionar", list(names), format_func=names.get)
        # removal also clears the employee achievement history
        confirmed = st.sidebar.checkbox("Confirmar remoção", key=f"confirm_remove_{selected_id}")
        removed = st.sidebar.button(
            "🗑️ Remover selecionado", use_container_width=True,
            disabled=not confirmed, key="remove_employee",
        )
        if removed and confirmed:
            employee_manager.remove_employee(selected_id)
            st.rerun()

    with st.sidebar.form("add_employee", clear_on_submit=True):
        st.markdown("**➕ Novo colaborador**")
        name = st.text_input("Nome")
        base_salary = st.number_input("Salário base", min_value=0.0, step=100.0)
        role = st.selectbox("Perfil", [r.value for r in EmployeeRole], index=1)
        if st.form_submit_button("Adicionar"):
            try:
                employee = employee_manager.add_employee(name, base_salary, role)
            except ValueError as e:
                st.error(str(e))
            else:
                st.success(f"{employee['name']} adicionado")
                st.rerun()

    return month, selected_id, show_salaries

def show_employee_panel(month: str, employee: dict, performance_manager: PerformanceManager, show_salaries: bool):
    st.markdown(f"### {employee['name']} · {employee['role']} · {masked(employee['base_salary'], show_salaries)}")
    current = performance_manager.get_employee_performance(month, employee["id"])

    cols = st.columns(len(KPIType))
    for col, kpi in zip(cols, KPIType):
        with col:
            value = st.number_input(
                KPI_LABELS[kpi], min_value=0.0, step=0.1,
                value=float(current.get(kpi.value, 0.0)), key=f"{month}_{employee['id']}_{kpi.value}",
            )
            if value != current.get(kpi.value, 0.0):
                performance_manager.record_achievement(month, employee["id"], kpi, value)

    results = performance_manager.evaluate(month, employee)
    table = pd.DataFrame([
        {
            "KPI": KPI_LABELS[r.kpi_type],
            "Atingimento (%)": r.achievement,
            "Prêmio (%)": round(r.bonus_percentage, 2),
            "Valor": masked(r.bonus_value, show_salaries),
        }
        for r in results
    ])
    st.dataframe(table, use_container_width=True, hide_index=True)
    total = performance_manager.engine.total_bonus(results)
    st.metric("🏆 Premiação total do mês", masked(total, show_salaries))

def show_team_report(month: str, reports: BonusReports, show_salaries: bool):
    st.markdown("### 📊 Consolidado da equipe")
    df = reports.month_table(month)
    if df.empty:
        st.info("Importe sua planilha CSV ou adicione um colaborador para iniciar os cálculos.")
        return

    summary = reports.summary(month)
    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("Colaboradores", summary["employees"])
    with col2:
        st.metric("Total premiação", masked(summary["total_bonus"], show_salaries))
    with col3:
        st.metric("Total bruto", masked(summary["total_gross"], show_salaries))

    display = df.copy()
    if not show_salaries:
        display = display.drop(columns=["Salário", "Total Bruto"])
    st.dataframe(display, use_container_width=True, hide_index=True)

    if summary["total_bonus"] > 0:
        fig = px.bar(
            x=[KPI_LABELS[KPIType(k)] for k in summary["by_kpi"]],
            y=list(summary["by_kpi"].values()),
            title="Premiação por KPI",
        )
        st.plotly_chart(fig, use_container_width=True)

    st.download_button(
        "📥 Exportar CSV completo",
        data=reports.export_csv(month).encode("utf-8"),
        file_name=export_filename(month),
        mime="text/csv",
    )
    with st.expander("📋 Copiar para planilha"):
        st.code(reports.clipboard_text(month), language=None)

def main():
    st.markdown('<div class="main-header"><h1>🏆 Premiação KPI</h1><p>Cálculo de prêmios mensais, trimestrais e anuais por atingimento</p></div>', unsafe_allow_html=True)
    employee_manager, performance_manager, reports = get_managers()
    month, selected_id, show_salaries = show_sidebar(employee_manager)

    calc_tab, report_tab, import_tab = st.tabs(["🧮 Calculadora", "📊 Relatório", "📁 Importação"])
    with calc_tab:
        employee = employee_manager.get_employee(selected_id) if selected_id else None
        if employee:
            show_employee_panel(month, employee, performance_manager, show_salaries)
        else:
            st.info("Selecione ou cadastre um colaborador na barra lateral.")
        st.caption(f"Escala da equipe: {settings.TEAM_SCALE_STRATEGY}")
    with report_tab:
        show_team_report(month, reports, show_salaries)
    with import_tab:
        render_import_widget(
            month=month,
            get_template_fn=employee_manager.get_template,
            import_fn=employee_manager.import_spreadsheet,
            history_fn=employee_manager.get_upload_history,
        )

if __name__=="__main__":
    main()
