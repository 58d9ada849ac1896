# hangwa/services/trash.py

"""
Корзина (мягкое удаление) для любых моделей с полями is_deleted / deleted_at.

Одна реализация обслуживает заказы и клиентов: удалить в корзину,
восстановить, удалить навсегда и пакетные варианты. Пакетная операция
выполняется одной транзакцией и возвращает счётчики, а не bool.
"""

from datetime import datetime
from typing import Awaitable, Callable, Iterable, Optional

from fastapi import Request
from sqlalchemy import delete, update
from sqlalchemy.future import select

from hangwa.utils.errors import ConflictError, NotFoundError

PurgeHook = Callable[[object, list[int]], Awaitable[None]]


class Trash:
    def __init__(self, model, target: str, label: str, on_purge: Optional[PurgeHook] = None):
        self.model = model
        self.target = target        # имя лога
        self.label = label          # название записи для сообщений об ошибках
        self.on_purge = on_purge    # чистка зависимых строк перед удалением навсегда

    async def _get(self, id: int, request: Request):
        db = request.state.db
        result = await db.execute(select(self.model).where(self.model.id == id))
        obj = result.scalar_one_or_none()
        if obj is None:
            await request.app.state.log.log_error(self.target, f"{self.label} не найден", {"id": id})
            raise NotFoundError(f"{self.label}을(를) 찾을 수 없습니다")
        return obj

    # ────────────── Одиночные операции ──────────────
    async def soft_delete(self, id: int, request: Request):
        db = request.state.db
        obj = await self._get(id, request)
        if not obj.is_deleted:
            obj.is_deleted = True
            obj.deleted_at = datetime.now()
            await db.commit()
            await db.refresh(obj)
            await request.app.state.log.log_info(self.target, f"{self.label} перемещён в корзину", {"id": id})
        return obj

    async def restore(self, id: int, request: Request):
        db = request.state.db
        obj = await self._get(id, request)
        if obj.is_deleted:
            obj.is_deleted = False
            obj.deleted_at = None
            await db.commit()
            await db.refresh(obj)
            await request.app.state.log.log_info(self.target, f"{self.label} восстановлен", {"id": id})
        return obj

    async def permanent_delete(self, id: int, request: Request) -> None:
        """Навсегда удаляется только то, что уже лежит в корзине."""
        db = request.state.db
        obj = await self._get(id, request)
        if not obj.is_deleted:
            raise ConflictError(f"휴지통에 있는 {self.label}만 영구 삭제할 수 있습니다")
        if self.on_purge:
            await self.on_purge(db, [id])
        await db.delete(obj)
        await db.commit()
        await request.app.state.log.log_info(self.target, f"{self.label} удалён навсегда", {"id": id})

    async def list_deleted(self, request: Request) -> list:
        db = request.state.db
        result = await db.execute(
            select(self.model)
            .where(self.model.is_deleted.is_(True))
            .order_by(self.model.deleted_at.desc())
        )
        return result.scalars().all()

    # ────────────── Пакетные операции ──────────────
    async def _split_ids(self, ids: Iterable[int], request: Request):
        unique_ids = list(dict.fromkeys(ids))
        result = await request.state.db.execute(
            select(self.model.id, self.model.is_deleted).where(self.model.id.in_(unique_ids))
        )
        found = {row[0]: bool(row[1]) for row in result.all()}
        missing = [i for i in unique_ids if i not in found]
        return unique_ids, found, missing

    async def _finish_bulk(self, request: Request, action: str, unique_ids, affected, skipped, missing) -> dict:
        db = request.state.db
        try:
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        summary = {
            "requested": len(unique_ids),
            "succeeded": len(affected),
            "not_found": len(missing),
            "not_found_ids": missing,
            "skipped": skipped,
        }
        await request.app.state.log.log_info(self.target, f"Пакетная операция: {action}", summary)
        return summary

    async def bulk_soft_delete(self, ids: Iterable[int], request: Request) -> dict:
        unique_ids, found, missing = await self._split_ids(ids, request)
        affected = list(found)
        if affected:
            await request.state.db.execute(
                update(self.model)
                .where(self.model.id.in_(affected), self.model.is_deleted.is_(False))
                .values(is_deleted=True, deleted_at=datetime.now())
            )
        return await self._finish_bulk(request, "bulk-delete", unique_ids, affected, 0, missing)

    async def bulk_restore(self, ids: Iterable[int], request: Request) -> dict:
        unique_ids, found, missing = await self._split_ids(ids, request)
        affected = list(found)
        if affected:
            await request.state.db.execute(
                update(self.model)
                .where(self.model.id.in_(affected))
                .values(is_deleted=False, deleted_at=None)
            )
        return await self._finish_bulk(request, "bulk-restore", unique_ids, affected, 0, missing)

    async def bulk_permanent_delete(self, ids: Iterable[int], request: Request) -> dict:
        db = request.state.db
        unique_ids, found, missing = await self._split_ids(ids, request)
        affected = [i for i, is_deleted in found.items() if is_deleted]
        skipped = len(found) - len(affected)
        if affected:
            if self.on_purge:
                await self.on_purge(db, affected)
            await db.execute(delete(self.model).where(self.model.id.in_(affected)))
        return await self._finish_bulk(request, "bulk-permanent-delete", unique_ids, affected, skipped, missing)
