"""
导出编排器 - 批次导出总控

职责：
1. 校验批次（输出目录/图纸集合）
2. 合并PDF阶段：项目级命名，一个事务，一次导出（失败即中止批次）
3. 逐张阶段：分配临时标识 → 命名 → 单张事务内导出 → 事务外对账改名
4. 进度推进与失败汇总（单张命名/导出/对账失败不影响后续图纸）
5. 任何退出路径都关闭进度接收器

测试要点：
- test_end_to_end_three_sheets: 3张图逐张导出并改名
- test_item_failure_isolation: 单张失败隔离
- test_combined_both_formats: 合并PDF + 逐张DWG
- test_combined_failure_fatal: 合并阶段失败中止
- test_progress_closed_on_config_error: 配置错误也关闭进度
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import datetime
from pathlib import Path

from ..config import RuntimeConfig, get_config
from ..interfaces import (
    ConfigError,
    ExportCallError,
    IExporter,
    IFileReconciler,
    IProgressSink,
    ITransactionalUnit,
    ReconcileError,
    ReconcileLockedError,
    ReconcileNotFoundError,
    TransactionFactory,
)
from ..models import (
    BatchPhase,
    BatchResult,
    DwgOptions,
    ExportBatchSpec,
    ExportJob,
    FailedSheet,
    FailureKind,
    ItemOutcome,
    ProjectInfo,
    SheetRef,
)
from ..naming import NamingRuleEngine, TempTokenAllocator
from .progress import LoggingProgressSink, open_folder
from .reconciler import FileReconciler
from .stages import check_transition, plan_phases

logger = logging.getLogger(__name__)

COMBINED_TRANSACTION = "Combined Export"
SINGLE_TRANSACTION = "Single Export"


class ExportOrchestrator:
    """批次导出编排器"""

    def __init__(
        self,
        exporter: IExporter,
        transaction_factory: TransactionFactory,
        progress: IProgressSink | None = None,
        project: ProjectInfo | None = None,
        naming: NamingRuleEngine | None = None,
        token_allocator: TempTokenAllocator | None = None,
        reconciler: IFileReconciler | None = None,
        config: RuntimeConfig | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.config = config or get_config()
        self.exporter = exporter
        self.transaction_factory = transaction_factory
        self.progress = progress or LoggingProgressSink()
        self.project = project
        self.naming = naming or NamingRuleEngine(self.config)
        self.token_allocator = token_allocator or TempTokenAllocator(config=self.config)
        self.reconciler = reconciler or FileReconciler(config=self.config)
        self.clock = clock
        self.phase = BatchPhase.INIT

    def run(
        self,
        batch: ExportBatchSpec,
        sheets: Sequence[SheetRef],
        should_cancel: Callable[[], bool] | None = None,
    ) -> BatchResult:
        """
        执行批次导出

        Args:
            batch: 批次配置
            sheets: 图纸列表（按调用方给定顺序处理，通常已按图号排序）
            should_cancel: 每张图纸开始前调用，返回True则停止后续图纸

        Returns:
            批次结果

        Raises:
            ConfigError: 输出目录不可用或未选择图纸
            ExportCallError: 合并PDF阶段失败
        """
        self.phase = BatchPhase.INIT
        started_at = self.clock()
        succeeded: list[Path] = []
        failed: list[FailedSheet] = []
        sheet_files: dict[str, tuple[Path, ...]] = {}
        cancelled = False

        try:
            self._validate(batch, sheets)
            self.token_allocator.reset()
            logger.info(
                f"开始批次导出: {len(sheets)}张, 格式={batch.format.value}, "
                f"合并={batch.combine}, 目录={batch.output_folder}"
            )

            for phase in plan_phases(batch):
                self._enter(phase)
                if phase == BatchPhase.COMBINED_PDF:
                    succeeded.append(self._run_combined(batch, sheets))
                else:
                    cancelled = self._run_per_item(
                        batch, sheets, succeeded, failed, sheet_files, should_cancel
                    )

            self._enter(BatchPhase.DONE)

        except Exception:
            self.phase = check_transition(self.phase, BatchPhase.ABORTED)
            logger.exception(f"批次导出中止: {batch.output_folder}")
            raise
        finally:
            self.progress.close()

        result = BatchResult(
            succeeded_files=tuple(succeeded),
            failed_sheets=tuple(failed),
            sheet_files=tuple(sheet_files.items()),
            cancelled=cancelled,
            phase=self.phase,
            started_at=started_at,
            finished_at=self.clock(),
        )
        logger.info(
            f"批次导出完成: 成功文件{len(result.succeeded_files)}个, "
            f"失败图纸{len(result.failed_sheets)}张, 取消={result.cancelled}"
        )

        if batch.open_folder_after:
            open_folder(batch.output_folder)

        return result

    # ------------------------------------------------------------------
    # 阶段
    # ------------------------------------------------------------------

    def _validate(self, batch: ExportBatchSpec, sheets: Sequence[SheetRef]) -> None:
        """批次校验（失败即不启动）"""
        if not sheets:
            raise ConfigError("未选择任何图纸")

        folder = batch.output_folder
        if not folder.is_absolute():
            raise ConfigError(f"输出目录必须为绝对路径: {folder}")
        try:
            folder.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigError(f"输出目录不可用: {folder}: {e}") from e
        if not folder.is_dir():
            raise ConfigError(f"输出目录不可用: {folder}")

    def _run_combined(self, batch: ExportBatchSpec, sheets: Sequence[SheetRef]) -> Path:
        """合并PDF：宿主直接按最终名称写出，无需对账"""
        self.progress.set_status("Exporting combined PDF")
        self.progress.update(50)

        fallback = self.config.naming.combined_fallback_pattern.format(date=self.clock())
        final_name = self.naming.final_name(batch.naming_rule, None, self.project, fallback)
        target = batch.output_folder / f"{final_name}.pdf"

        tx = self.transaction_factory(COMBINED_TRANSACTION)
        try:
            tx.start()
            # 同名文件先删除再重写
            if target.exists():
                target.unlink()
            self.exporter.export_combined(
                batch.output_folder,
                [s.id for s in sheets],
                batch.build_pdf_options(final_name),
            )
            tx.commit()
        except Exception as e:
            self._rollback(tx)
            raise ExportCallError(f"合并PDF导出失败: {e}") from e

        logger.info(f"合并PDF已导出: {target.name}")
        if not batch.runs_per_item:
            self.progress.update(100)
        return target

    def _run_per_item(
        self,
        batch: ExportBatchSpec,
        sheets: Sequence[SheetRef],
        succeeded: list[Path],
        failed: list[FailedSheet],
        sheet_files: dict[str, tuple[Path, ...]],
        should_cancel: Callable[[], bool] | None,
    ) -> bool:
        """逐张导出，返回是否被取消"""
        total = len(sheets)
        formats = batch.per_item_formats
        dwg_options = batch.build_dwg_options()

        for index, sheet in enumerate(sheets, start=1):
            if should_cancel is not None and should_cancel():
                logger.info(f"批次已取消，剩余{total - index + 1}张未处理")
                return True

            self.progress.set_status(f"Processing: {sheet.number}")
            outcome = self._process_item(batch, sheet, formats, dwg_options)

            succeeded.extend(outcome.files)
            if outcome.files:
                sheet_files[sheet.id] = tuple(outcome.files)
            if outcome.failure is not None:
                failed.append(outcome.failure)
                logger.warning(f"图纸导出失败: {sheet.label}: {outcome.failure.reason}")

            self.progress.update(index / total * 100)

        return False

    def _create_job(
        self, batch: ExportBatchSpec, sheet: SheetRef, formats: tuple[str, ...]
    ) -> ExportJob:
        return ExportJob(
            sheet=sheet,
            temp_token=self.token_allocator.new_token(),
            final_base_name=self.naming.final_name(batch.naming_rule, sheet, self.project),
            formats_requested=formats,
        )

    def _process_item(
        self,
        batch: ExportBatchSpec,
        sheet: SheetRef,
        formats: tuple[str, ...],
        dwg_options: DwgOptions,
    ) -> ItemOutcome:
        """单张图纸：命名 → 事务内导出 → 事务外对账（任何错误都只影响本张）"""
        folder = batch.output_folder

        try:
            job = self._create_job(batch, sheet, formats)
        except Exception as e:
            return ItemOutcome(
                failure=FailedSheet(
                    sheet=sheet,
                    reason=f"命名失败: {e}",
                    error_kind=FailureKind.NAMING,
                ),
            )

        tx = self.transaction_factory(SINGLE_TRANSACTION)
        try:
            tx.start()
            for fmt in job.formats_requested:
                if fmt == "pdf":
                    self.exporter.export_single(
                        folder, job.temp_token, sheet.id, batch.build_pdf_options(job.temp_token)
                    )
                else:
                    # DWG 以临时标识作为前缀
                    self.exporter.export_dwg(folder, job.temp_token, sheet.id, dwg_options)
            tx.commit()
        except Exception as e:
            self._rollback(tx)
            return ItemOutcome(
                job=job,
                failure=FailedSheet(
                    sheet=sheet,
                    reason=f"导出失败: {e}",
                    error_kind=FailureKind.EXPORT_CALL,
                ),
            )

        files: list[Path] = []
        errors: list[ReconcileError] = []
        for fmt in job.formats_requested:
            try:
                files.append(
                    self.reconciler.reconcile(
                        folder, job.temp_token, sheet, job.final_name(fmt), f"*.{fmt}"
                    )
                )
            except ReconcileError as e:
                errors.append(e)
            except Exception as e:
                errors.append(ReconcileError(f"对账失败: {e}"))

        failure = None
        if errors:
            if isinstance(errors[0], ReconcileLockedError):
                kind = FailureKind.RECONCILE_LOCKED
            elif isinstance(errors[0], ReconcileNotFoundError):
                kind = FailureKind.RECONCILE_NOT_FOUND
            else:
                kind = FailureKind.RECONCILE_ERROR
            failure = FailedSheet(
                sheet=sheet,
                reason="; ".join(str(e) for e in errors),
                error_kind=kind,
            )
        return ItemOutcome(job=job, files=files, failure=failure)

    # ------------------------------------------------------------------
    # 辅助
    # ------------------------------------------------------------------

    def _enter(self, phase: BatchPhase) -> None:
        self.phase = check_transition(self.phase, phase)
        logger.debug(f"进入阶段: {phase.value}")

    @staticmethod
    def _rollback(tx: ITransactionalUnit) -> None:
        """回滚事务；回滚本身失败时只记录，保留原始错误"""
        try:
            tx.rollback()
        except Exception:
            logger.exception("事务回滚失败")
